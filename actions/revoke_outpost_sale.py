"""
REVOKE_OUTPOST_SALE — withdraw open market listings.

Only listings that are still open (not sold, not already revoked) can be
withdrawn. Locations without an open listing are reported back; the
others are still revoked.
"""

import logging
from typing import List

from actions.base import Action, ActionContext, plural
from agents.intent_extractor import parse_json_object
from agents.tools.luna_errors import PreconditionFailedError, UserInputError
from models.contract_call import ActionResponse
from models.intents import RevokeIntent
from tools.call_chain import BatchPolicy, CALL_ID_REVOKE_OUTPOST_SALE

logger = logging.getLogger('Actions')

REVOKE_OUTPOST_SALE_TEMPLATE = """
# Message
{message}

# Task
Extract which outpost sale(s) the user wants to revoke. Listings are identified by the
outpost location, or "all" when the user wants to revoke every sale.

Put a JSON object, as a string, in the "text" field.
If no location is given and the user does not mean all sales, put an empty JSON object in the "text" field.

# Examples
Message: "I want to revoke all my outpost sales"
Response: {{"text": "{{\\"locations\\": \\"all\\"}}"}}

Message: "Cancel the sale of my outpost at 4960,2170"
Response: {{"text": "{{\\"locations\\": [[4960, 2170]]}}"}}

Message: "Take my outposts at 4960,2170 and 3960,2171 off the market"
Response: {{"text": "{{\\"locations\\": [[4960, 2170], [3960, 2171]]}}"}}

Message: "I want to revoke my outpost sale"
Response: {{"text": "{{}}"}}

# Important Rules
1. Only the locations go in the JSON
2. Do not include any additional text or explanation
"""


def parse_revoke(text: str) -> RevokeIntent:
    data = parse_json_object(text)
    data.setdefault("locations", [])
    return RevokeIntent.model_validate(data)


class RevokeOutpostSaleAction(Action):
    name = "REVOKE_OUTPOST_SALE"
    description = "Revoke the market listing of one or more of your outposts"
    similes = ["CANCEL_OUTPOST_SALE", "DELIST_OUTPOST", "REMOVE_OUTPOST_LISTING"]
    failure_verb = "revoking outpost sale"
    batch_policy = BatchPolicy.PER_ITEM_BEST_EFFORT

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        game_id = await self.require_game_id(ctx)

        intent = await ctx.extractor.extract(REVOKE_OUTPOST_SALE_TEMPLATE, text, parse_revoke)
        if intent is None or (not intent.revoke_all and not intent.locations):
            raise UserInputError("Please tell me the location of the outpost sale you want to revoke.")

        sales = await ctx.torii.get_player_outpost_sales(wallet_address, game_id)
        open_sales = [sale for sale in sales if sale.is_open]
        if not open_sales:
            raise PreconditionFailedError("You don't have any open outpost sales to revoke.")

        notes: List[str] = []
        if intent.revoke_all:
            targets = open_sales
        else:
            by_position = {sale.offer_position: sale for sale in open_sales}
            unresolved = [str(loc) for loc in intent.locations if loc not in by_position]
            notes = [f"I couldn't find an open sale for your outpost at {loc}." for loc in unresolved]
            matched = []
            for loc in intent.locations:
                sale = by_position.get(loc)
                if sale is not None and sale not in matched:
                    matched.append(sale)
            targets = self.apply_batch_policy(matched, unresolved)

        calls = [
            ctx.starknet.build_call(
                CALL_ID_REVOKE_OUTPOST_SALE,
                ctx.settings.market_address,
                "revoke",
                [game_id, sale.trade_id],
            )
            for sale in targets
        ]
        text = (
            f"Please sign the {'transaction' if len(calls) == 1 else 'transactions'} to revoke "
            f"{plural(len(calls), 'outpost sale')}"
        )
        if notes:
            text += "\n" + "\n".join(notes)
        return self.respond(text, calls)
