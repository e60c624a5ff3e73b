"""
Action Node — Runs the chosen action for the player's wallet.

Action.run() never raises, so whatever it returns is the reply.
"""

import logging
from pipeline.state import ChatState

logger = logging.getLogger("pipeline.action")


async def action_node(state: ChatState, *, registry, context, **_kwargs) -> dict:
    """Execute the routed action.

    Args:
        state: Current ChatState.
        registry: ActionRegistry to look the action up in.
        context: ActionContext shared by all actions.
    """
    action = registry.get(state.get("action"))
    if action is None:
        logger.error(f"Action node reached with unknown action {state.get('action')!r}")
        return {"error": f"Unknown action {state.get('action')}"}

    response = await action.run(context, state["wallet_address"], state["text"])
    logger.info(
        f"{action.name} finished (success={response.success}, "
        f"calls={len(response.contract_calls or [])})"
    )
    return {"response": response}
