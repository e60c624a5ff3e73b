"""
GET_ACTIVE_GAME — report the active game, its phase and, while still
preparing, roughly how long until play starts.
"""

import logging

from actions.base import Action, ActionContext
from models.contract_call import ActionResponse
from models.game import GamePhase, GamePhaseState
from tools.game_session import resolve_active_game_id, resolve_average_block_time

logger = logging.getLogger('Actions')

NO_ACTIVE_GAME_TEXT = "There is no active game at the moment."


def format_time_to_play(phase: GamePhase, average_block_time: float) -> str:
    minutes_left = phase.blocks_until_play * average_block_time / 60
    hours = int(minutes_left // 60)
    minutes = round(minutes_left % 60)
    return f"{hours} hours and {minutes} minutes"


class GetActiveGameAction(Action):
    name = "GET_ACTIVE_GAME"
    description = "Get the current active game and its phase"
    similes = ["ACTIVE_GAME", "CURRENT_GAME", "GAME_PHASE"]
    failure_verb = "getting active game"

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        game_id = await resolve_active_game_id(ctx.cache, ctx.torii, ttl=ctx.settings.cache_ttl_seconds)
        if not game_id:
            return self.respond(NO_ACTIVE_GAME_TEXT)

        phase = await ctx.gate.resolve_phase(game_id)
        reply = f"The current active game is {game_id} and it is currently in the {phase.state.value} phase."

        if phase.state == GamePhaseState.PREPARATION:
            block_time = await resolve_average_block_time(
                ctx.cache, ctx.starknet, ttl=ctx.settings.cache_ttl_seconds
            )
            reply += (
                f"\nThe game phase will start in {format_time_to_play(phase, block_time)}."
                "\nIf you haven't joined the game yet, you can do so by purchasing an outpost."
            )
        return self.respond(reply)
