"""
GET_OUTPOSTS — summary of the player's outposts and spare reinforcements,
with a suggestion for what to do next.

The same summary is sent after a transaction completes.
"""

import logging
from typing import List

from actions.base import Action, ActionContext, plural
from models.contract_call import ActionResponse
from models.game import Outpost

logger = logging.getLogger('Actions')


def summarize_outposts(outposts: List[Outpost], reinforcements_available: int,
                       after_transaction: bool = False) -> str:
    if not outposts:
        return (
            "You don't have any outposts in the current game yet. "
            "Purchase one to join the fight against the Revenants."
        )

    lead = "The transaction was successful, now you have" if after_transaction else "You have"
    lines = [f"{lead} {plural(len(outposts), 'outpost')}:"]
    for idx, outpost in enumerate(outposts, start=1):
        protection = "Unprotected" if outpost.is_unprotected else outpost.reinforcement_type
        lines.append(
            f"#{idx}\n"
            f"ID: {outpost.id}\n"
            f"Location: [{outpost.position.x}, {outpost.position.y}]\n"
            f"Life: {outpost.life}\n"
            f"Reinforcement Slots Remaining: {outpost.reinforcement_slots_remaining}\n"
            f'Reinforcement Type: "{protection}"'
        )
    lines.append(f"You also have {plural(reinforcements_available, 'reinforcement')} available.")

    open_slots = [idx for idx, o in enumerate(outposts, start=1) if o.reinforcement_slots_remaining > 0]
    if open_slots and reinforcements_available <= 0:
        lines.append("Some of your outposts still have room for reinforcements. Consider purchasing more.")
    elif open_slots:
        refs = ", ".join(f"#{idx}" for idx in open_slots)
        lines.append(f"You could reinforce outpost {refs} with the reinforcements you have.")
    if any(o.is_unprotected for o in outposts):
        lines.append("Some outposts are unprotected. Remember to set their reinforcement type.")

    return "\n\n".join(lines)


class GetOutpostsAction(Action):
    name = "GET_OUTPOSTS"
    description = "Show the player's outposts in the current game"
    similes = ["MY_OUTPOSTS", "LIST_OUTPOSTS", "OUTPOST_STATUS"]
    failure_verb = "getting outposts"

    def __init__(self, after_transaction: bool = False):
        self.after_transaction = after_transaction

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        game_id = await self.require_game_id(ctx)
        outposts = await ctx.torii.get_player_outposts(wallet_address, game_id)
        player = await ctx.torii.get_player_info(wallet_address, game_id)
        available = player.reinforcements_available if player else 0
        logger.info(f"{wallet_address} has {len(outposts)} outpost(s), {available} reinforcement(s)")
        return self.respond(summarize_outposts(outposts, available, self.after_transaction))
