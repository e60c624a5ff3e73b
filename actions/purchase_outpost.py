"""
PURCHASE_OUTPOST — buy one or more outposts for the active game.

Only allowed during the preparation phase. The total cost is checked
against the wallet balance before anything is built; an approve call
is added only when the outpost contract's allowance is short.
"""

import logging

from actions.base import Action, ActionContext, plural
from agents.intent_extractor import parse_count
from agents.tools.luna_errors import PreconditionFailedError, UserInputError
from models.contract_call import ActionResponse
from tools.call_chain import CALL_ID_PURCHASE_OUTPOST, SequencingPolicy

logger = logging.getLogger('Actions')

PURCHASE_OUTPOST_TEMPLATE = """
# Message
{message}

# Task
Extract the number of outposts the user wants to purchase from the message.
Put that number, as a string, in the "text" field.

# Examples
Message: "I want to buy 2 outposts"
Response: {{"text": "2"}}

Message: "Help me purchase 5 outposts"
Response: {{"text": "5"}}

Message: "I want to buy an outpost"
Response: {{"text": "1"}}

# Important Rules
1. The text field holds a single number and nothing else
2. If no specific number is mentioned, use "1"
3. Do not include any additional text, punctuation, or explanation
"""


class PurchaseOutpostAction(Action):
    name = "PURCHASE_OUTPOST"
    description = "Purchase outposts in the current Rising Revenant game"
    similes = ["BUY_OUTPOST", "GET_OUTPOST", "ACQUIRE_OUTPOST"]
    failure_verb = "purchasing outpost"

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        game_id = await self.require_game_id(ctx)

        decision = await ctx.gate.check(self.name, game_id)
        if not decision.allowed:
            logger.info(f"Outpost purchase blocked: {decision.reason.value}")
            return self.deny(
                f"You can't purchase outposts right now. {decision.message}",
                error=decision.reason.value,
            )

        if ctx.settings.outpost_price <= 0:
            raise PreconditionFailedError("Outpost purchases are unavailable: no outpost price is configured.")

        intent = await ctx.extractor.extract(PURCHASE_OUTPOST_TEMPLATE, text, parse_count)
        if intent is None:
            raise UserInputError(
                "Could not understand your purchase request. "
                "Please tell me how many outposts you want to purchase."
            )
        count = intent.count
        if count > ctx.settings.max_purchase_count:
            raise UserInputError(
                f"You can purchase at most {ctx.settings.max_purchase_count} outposts in one request."
            )

        total = ctx.settings.to_minor_units(ctx.settings.outpost_price * count)
        spender = ctx.settings.outpost_address
        balance = await ctx.starknet.balance_of(wallet_address)
        allowance = await ctx.starknet.allowance(wallet_address, spender)
        logger.info(f"Outpost purchase x{count}: total={total} balance={balance} allowance={allowance}")

        if balance < total:
            raise PreconditionFailedError(
                f"Insufficient $LORDS balance to purchase {plural(count, 'outpost')}. "
                f"You need {ctx.settings.format_lords(total)} $LORDS but only have "
                f"{ctx.settings.format_lords(balance)}."
            )

        approve = ctx.starknet.build_approve_call(spender, total) if allowance < total else None
        purchase = ctx.starknet.build_call(CALL_ID_PURCHASE_OUTPOST, spender, "purchase", [game_id])
        calls = ctx.assembler.fund_and_spend(approve, ctx.assembler.fan_out(purchase, count))

        return self.respond(
            self.signing_text(
                approve_needed=approve is not None,
                chained=ctx.assembler.sequencing == SequencingPolicy.CHAINED,
                what=f"purchase {plural(count, 'outpost')}",
                call_count=count,
            ),
            calls,
        )
