"""
Router Node — Picks the action for the incoming message.

Wraps MessageRouterAgent. Returns partial ChatState with the action name
so the conditional edge can decide what comes next.
"""

import logging
from pipeline.state import ChatState

logger = logging.getLogger("pipeline.router")


async def router_node(state: ChatState, *, message_router, **_kwargs) -> dict:
    """Classify the player message.

    Args:
        state: Current ChatState.
        message_router: The MessageRouterAgent instance.

    Returns:
        Partial state dict with `action` set.
    """
    try:
        action = await message_router.route(state["text"])
        logger.info(f"Router picked: {action}")
        return {"action": action}
    except Exception as e:
        logger.error(f"Router node error: {e}", exc_info=True)
        return {"action": "NONE", "error": f"Router failed: {e}"}
