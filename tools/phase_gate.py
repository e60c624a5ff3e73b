"""
Game-Phase Gate — which actions the current game phase allows.

The phase is never stored. It is recomputed on every check from the
latest block number and the game's two thresholds:

    current <  preparation_block               -> ended
    preparation_block <= current < play_block  -> preparation
    current >= play_block                      -> active
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set

from agents.tools.luna_errors import StateUnavailableError
from models.game import GamePhase, GamePhaseState

logger = logging.getLogger('PhaseGate')


class GateReason(str, Enum):
    ALLOWED = "allowed"
    WRONG_PHASE = "wrong_phase"
    UNAVAILABLE = "unavailable"


@dataclass
class GateDecision:
    allowed: bool
    reason: GateReason
    message: str = ""


# Actions missing from this map are allowed in every phase
PHASE_REQUIREMENTS: Dict[str, Set[GamePhaseState]] = {
    "PURCHASE_OUTPOST": {GamePhaseState.PREPARATION},
}


def compute_phase(current_block: int, preparation_block: int, play_block: int) -> GamePhase:
    if current_block >= play_block:
        state = GamePhaseState.ACTIVE
    elif current_block >= preparation_block:
        state = GamePhaseState.PREPARATION
    else:
        state = GamePhaseState.ENDED
    return GamePhase(
        state=state,
        preparation_block=preparation_block,
        play_block=play_block,
        current_block=current_block,
    )


class PhaseGate:
    """Resolves the phase of a game and authorizes actions against it."""

    def __init__(self, torii, starknet):
        self.torii = torii
        self.starknet = starknet

    async def resolve_phase(self, game_id: str) -> GamePhase:
        """Read thresholds and chain height. Raises StateUnavailableError."""
        preparation_block, play_block = await self.torii.get_phase_thresholds(game_id)
        current_block = await self.starknet.latest_block()
        phase = compute_phase(current_block, preparation_block, play_block)
        logger.info(
            f"Game {game_id} phase={phase.state.value} "
            f"(block {current_block}, prep {preparation_block}, play {play_block})"
        )
        return phase

    def authorize(self, action: str, phase: Optional[GamePhase]) -> GateDecision:
        required = PHASE_REQUIREMENTS.get(action)
        if phase is None:
            return GateDecision(
                allowed=False,
                reason=GateReason.UNAVAILABLE,
                message="I can't read the game phase right now. Please try again in a moment.",
            )
        if required is None or phase.state in required:
            return GateDecision(allowed=True, reason=GateReason.ALLOWED)

        wanted = " or ".join(sorted(s.value for s in required))
        return GateDecision(
            allowed=False,
            reason=GateReason.WRONG_PHASE,
            message=f"That can only be done in the {wanted} phase. The game is in the {phase.state.value} phase.",
        )

    async def check(self, action: str, game_id: str) -> GateDecision:
        """Resolve the phase and authorize in one step; never allows on read failure."""
        try:
            phase = await self.resolve_phase(game_id)
        except StateUnavailableError as e:
            logger.error(f"Phase unavailable for game {game_id}: {e}")
            phase = None
        return self.authorize(action, phase)
