"""
SELL_OUTPOST — list owned outposts on the market at a fixed price.

Each location is handled on its own: outposts the player does not own
are reported back, the rest are listed.
"""

import logging
from typing import List

from actions.base import Action, ActionContext, plural
from agents.intent_extractor import parse_json_object
from agents.tools.luna_errors import PreconditionFailedError, UserInputError
from models.contract_call import ActionResponse
from models.game import Position
from models.intents import SellIntent
from tools.call_chain import BatchPolicy, CALL_ID_SELL_OUTPOST

logger = logging.getLogger('Actions')

SELL_OUTPOST_TEMPLATE = """
# Message
{message}

# Task
To sell outposts we need two things from the user:
1. The outpost location(s), or "all"
2. The price, in $LORDS, for each outpost

Put a JSON object, as a string, in the "text" field.
If the location or the price is missing, put an empty JSON object in the "text" field.

# Examples
Message: "I want to sell my outpost at location 4960,2170 for 20 $LORDS"
Response: {{"text": "{{\\"locations\\": [[4960, 2170]], \\"price\\": 20}}"}}

Message: "Help me sell my outposts at 4960,2170 and 3960,2171 for 30 $LORDS"
Response: {{"text": "{{\\"locations\\": [[4960, 2170], [3960, 2171]], \\"price\\": 30}}"}}

Message: "I want to sell all my outposts for 30 $LORDS each"
Response: {{"text": "{{\\"locations\\": \\"all\\", \\"price\\": 30}}"}}

Message: "I want to sell my outpost"
Response: {{"text": "{{}}"}}

# Important Rules
1. Only the locations and the price go in the JSON
2. Do not include any additional text or explanation
"""


def parse_sell(text: str) -> SellIntent:
    data = parse_json_object(text)
    data.setdefault("locations", [])
    return SellIntent.model_validate(data)


class SellOutpostAction(Action):
    name = "SELL_OUTPOST"
    description = "List one or more of your outposts for sale on the market"
    similes = ["LIST_OUTPOST", "SELL_OUTPOSTS", "PUT_OUTPOST_ON_SALE"]
    failure_verb = "selling outpost"
    batch_policy = BatchPolicy.PER_ITEM_BEST_EFFORT

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        game_id = await self.require_game_id(ctx)

        intent = await ctx.extractor.extract(SELL_OUTPOST_TEMPLATE, text, parse_sell)
        if intent is None or (not intent.sell_all and not intent.locations):
            raise UserInputError(
                "Please tell me the location of the outpost you want to sell and the price you want for it."
            )
        if intent.price is None:
            raise UserInputError("Please tell me the price, in $LORDS, you want to sell your outpost for.")

        outposts = await ctx.torii.get_player_outposts(wallet_address, game_id)
        if not outposts:
            raise PreconditionFailedError("You don't have any outposts to sell.")

        owned = [outpost.position for outpost in outposts]
        notes: List[str] = []
        if intent.sell_all:
            targets = owned
        else:
            unresolved = [str(loc) for loc in intent.locations if loc not in owned]
            notes = [f"I couldn't find an outpost you own at {loc}." for loc in unresolved]
            targets = self.apply_batch_policy(
                [loc for loc in intent.locations if loc in owned], unresolved
            )

        calls = [
            ctx.starknet.build_call(
                CALL_ID_SELL_OUTPOST,
                ctx.settings.market_address,
                "create",
                [game_id, intent.price, *position.as_calldata()],
            )
            for position in _dedupe(targets)
        ]
        text = (
            f"Please sign the {'transaction' if len(calls) == 1 else 'transactions'} to list "
            f"{plural(len(calls), 'outpost')} for {intent.price} $LORDS each"
        )
        if notes:
            text += "\n" + "\n".join(notes)
        return self.respond(text, calls)


def _dedupe(positions: List[Position]) -> List[Position]:
    seen = set()
    unique = []
    for position in positions:
        if position not in seen:
            seen.add(position)
            unique.append(position)
    return unique
