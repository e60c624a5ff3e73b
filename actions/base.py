"""
Action base — shared plumbing for every intent-triggered action.

Each action turns (wallet address, chat text) into an ActionResponse.
`Action.run()` is the last line of defense: whatever goes wrong inside
`handle()`, the player gets a chat reply and the caller gets a
success flag. No exception leaves an action.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

from agents.intent_extractor import IntentExtractor
from agents.tools.luna_errors import (
    PreconditionFailedError,
    StateUnavailableError,
    UserInputError,
)
from agents.tools.starknet_client import StarknetClient
from agents.tools.torii_client import ToriiClient
from models.contract_call import ActionResponse, ContractCall
from tools.call_chain import BatchPolicy, CallChainAssembler
from tools.game_session import resolve_active_game_id
from tools.phase_gate import PhaseGate
from tools.settings import LunaSettings
from tools.ttl_cache import TTLCache

logger = logging.getLogger('Actions')

T = TypeVar("T")

STATE_UNAVAILABLE_TEXT = "I can't reach the game state right now. Please try again in a moment."


@dataclass
class ActionContext:
    """Collaborators an action may use. Built once, shared by all requests."""

    settings: LunaSettings
    torii: ToriiClient
    starknet: StarknetClient
    extractor: IntentExtractor
    cache: TTLCache
    gate: PhaseGate
    assembler: CallChainAssembler


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


class Action:
    """Base class. Subclasses set the metadata and implement `handle()`."""

    name: str = "NONE"
    description: str = ""
    similes: List[str] = []
    failure_verb: str = "handling your request"
    batch_policy: Optional[BatchPolicy] = None

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        raise NotImplementedError

    async def run(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        logger.info(f"Starting {self.name} handler for {wallet_address}...")
        try:
            response = await self.handle(ctx, wallet_address, text)
        except UserInputError as e:
            logger.info(f"{self.name}: needs clarification: {e}")
            return self.deny(str(e), error="Invalid request")
        except PreconditionFailedError as e:
            logger.info(f"{self.name}: precondition failed: {e}")
            return self.deny(str(e), error="Precondition failed")
        except StateUnavailableError as e:
            logger.warning(f"{self.name}: state unavailable: {e}")
            return self.deny(STATE_UNAVAILABLE_TEXT, error=str(e))
        except Exception as e:
            logger.error(f"Error {self.failure_verb}: {e}", exc_info=True)
            return self.deny(f"Error {self.failure_verb}: {e}", error=str(e))

        response.action = self.name
        return response

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def respond(self, text: str, contract_calls: Optional[List[ContractCall]] = None) -> ActionResponse:
        return ActionResponse(
            text=text,
            action=self.name,
            success=True,
            contract_calls=contract_calls or None,
        )

    def deny(self, text: str, error: Optional[str] = None) -> ActionResponse:
        return ActionResponse(text=text, action=self.name, success=False, error=error or text)

    async def require_game_id(self, ctx: ActionContext) -> str:
        game_id = await resolve_active_game_id(ctx.cache, ctx.torii, ttl=ctx.settings.cache_ttl_seconds)
        if not game_id:
            logger.error("No active game id found")
            raise PreconditionFailedError("No active game id found")
        return game_id

    def apply_batch_policy(self, resolved: Sequence[T], unresolved: Sequence[str]) -> List[T]:
        """Decide what survives when some targets did not resolve.

        BATCH_ATOMIC refuses everything if anything is unresolved.
        PER_ITEM_BEST_EFFORT keeps what resolved, refusing only when
        nothing did. Callers report `unresolved` to the player.
        """
        if unresolved and self.batch_policy == BatchPolicy.BATCH_ATOMIC:
            raise PreconditionFailedError(
                f"One or more outpost IDs are invalid: {', '.join(unresolved)}"
            )
        if not resolved:
            raise PreconditionFailedError(
                "None of the outposts you mentioned could be found: " + ", ".join(unresolved)
            )
        return list(resolved)

    @staticmethod
    def signing_text(approve_needed: bool, chained: bool, what: str, call_count: int) -> str:
        """Tell the player which transactions to sign, in order."""
        tx = "transaction" if call_count == 1 else "transactions"
        if not approve_needed:
            return f"Please sign the {tx} to {what} for the current game"
        if chained:
            return (
                "Please sign the first transaction to increase your allowance first. "
                f"After it confirms, please sign the next {tx} to {what} for the current game"
            )
        return f"Please sign the allowance increase and then the {tx} to {what} for the current game"
