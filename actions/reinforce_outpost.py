"""
REINFORCE_OUTPOST — spend available reinforcements on owned outposts.

Targets come from explicit outpost ids, explicit coordinates, or "all
my outposts". Every target must be one of the caller's own outposts with
`count` reinforcement slots left. The batch is atomic: if any named
outpost fails that, nothing is built. The player must hold `count`
reinforcements per target before any call is returned.
"""

import asyncio
import logging
from typing import List

from actions.base import Action, ActionContext, plural
from agents.intent_extractor import parse_json_object
from agents.tools.luna_errors import PreconditionFailedError, UserInputError
from models.contract_call import ActionResponse
from models.game import Outpost
from models.intents import ReinforcementIntent
from tools.call_chain import BatchPolicy, CALL_ID_REINFORCE_OUTPOST

logger = logging.getLogger('Actions')

REINFORCE_OUTPOST_TEMPLATE = """
# Message
{message}

# Task
Extract which outpost(s) the user wants to reinforce and how many reinforcements
to add to each one.

Set reinforceAll to true when the user means every outpost they own, for example:
"all outposts", "both outposts", "all of my outposts", "every outpost".

Only set outpostIds when the user gives explicit outpost ids (e.g. "0x62...").
Only set locations when the user gives coordinates, as [[x, y], ...].

Put the JSON object, as a string, in the "text" field.

# Examples
Message: "Reinforce outpost 0x6220917 with 10 reinforcements"
Response: {{"text": "{{\\"outpostIds\\": [\\"0x6220917\\"], \\"locations\\": [], \\"count\\": \\"10\\", \\"reinforceAll\\": false}}"}}

Message: "Add 2 reinforcements to my outpost at 4960,2170"
Response: {{"text": "{{\\"outpostIds\\": [], \\"locations\\": [[4960, 2170]], \\"count\\": \\"2\\", \\"reinforceAll\\": false}}"}}

Message: "Put 5 reinforcements on all my outposts"
Response: {{"text": "{{\\"outpostIds\\": [], \\"locations\\": [], \\"count\\": \\"5\\", \\"reinforceAll\\": true}}"}}

Generate only the JSON response, no other commentary.
"""


def parse_reinforcement(text: str) -> ReinforcementIntent:
    return ReinforcementIntent.model_validate(parse_json_object(text))


class ReinforceOutpostAction(Action):
    name = "REINFORCE_OUTPOST"
    description = "Reinforce one or more of your outposts"
    similes = ["REINFORCE_OUTPOSTS", "REINFORCE_REVENANT", "FORTIFY_OUTPOST"]
    failure_verb = "reinforcing outpost"
    batch_policy = BatchPolicy.BATCH_ATOMIC

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        game_id = await self.require_game_id(ctx)

        intent = await ctx.extractor.extract(REINFORCE_OUTPOST_TEMPLATE, text, parse_reinforcement)
        if intent is None:
            raise UserInputError(
                "Could not understand your reinforcement request. Please specify outpost ID(s) "
                "or mention that you want to reinforce all outposts, along with the number of reinforcements."
            )
        if intent.count is None:
            raise UserInputError("Please specify how many reinforcements you want to add to your outpost(s)")

        player = await ctx.torii.get_player_info(wallet_address, game_id)
        if player is None:
            raise PreconditionFailedError(
                "You haven't joined the current game yet. Purchase an outpost first."
            )

        targets = await self._resolve_targets(ctx, wallet_address, game_id, intent)

        full = [outpost for outpost in targets if outpost.reinforcement_slots_remaining < intent.count]
        if full:
            details = ", ".join(
                f"{outpost.position} ({outpost.reinforcement_slots_remaining} left)" for outpost in full
            )
            raise PreconditionFailedError(
                f"Not enough reinforcement slots to add {plural(intent.count, 'reinforcement')} "
                f"to every outpost. Slots remaining: {details}."
            )

        required = intent.count * len(targets)
        available = player.reinforcements_available
        if available < required:
            scope = " to reinforce all outposts" if intent.reinforce_all else ""
            raise PreconditionFailedError(
                f"You don't have enough reinforcements{scope}. "
                f"You have {available} reinforcements available, but need {required} "
                f"({intent.count} per outpost). Do you want me to help you purchase more reinforcements?"
            )

        calls = [
            ctx.starknet.build_call(
                CALL_ID_REINFORCE_OUTPOST,
                ctx.settings.outpost_address,
                "reinforce",
                [game_id, *outpost.position.as_calldata(), intent.count],
            )
            for outpost in targets
        ]
        return self.respond(
            f"Please sign the {'transaction' if len(calls) == 1 else 'transactions'} to add "
            f"{plural(intent.count, 'reinforcement')} to {plural(len(calls), 'outpost')}",
            calls,
        )

    async def _resolve_targets(
        self, ctx: ActionContext, wallet_address: str, game_id: str, intent: ReinforcementIntent
    ) -> List[Outpost]:
        """Map ids and coordinates onto the caller's own outposts."""
        if not intent.reinforce_all and not intent.outpost_ids and not intent.locations:
            raise UserInputError("Please specify which outpost(s) you want to reinforce")

        owned = {o.position: o for o in await ctx.torii.get_player_outposts(wallet_address, game_id)}

        if intent.reinforce_all:
            if not owned:
                raise PreconditionFailedError("You don't have any outposts to reinforce.")
            return list(owned.values())

        resolved: List[Outpost] = []
        unresolved: List[str] = []

        if intent.outpost_ids:
            positions = await asyncio.gather(
                *(ctx.torii.get_outpost_location_by_id(outpost_id) for outpost_id in intent.outpost_ids)
            )
            for outpost_id, position in zip(intent.outpost_ids, positions):
                if position is None or position not in owned:
                    unresolved.append(outpost_id)
                else:
                    resolved.append(owned[position])

        for location in intent.locations:
            if location in owned:
                resolved.append(owned[location])
            else:
                unresolved.append(str(location))

        return self.apply_batch_policy(resolved, unresolved)
