"""
PURCHASE_REINFORCEMENT — buy reinforcements for the active game.

No phase restriction. A single `purchase(game_id, count)` call covers
the whole quantity.
"""

import logging

from actions.base import Action, ActionContext, plural
from agents.intent_extractor import parse_count
from agents.tools.luna_errors import PreconditionFailedError, UserInputError
from models.contract_call import ActionResponse
from tools.call_chain import CALL_ID_PURCHASE_REINFORCEMENT, SequencingPolicy

logger = logging.getLogger('Actions')

PURCHASE_REINFORCEMENT_TEMPLATE = """
# Message
{message}

# Task
Extract the number of reinforcements the user wants to purchase from the message.
Put that number, as a string, in the "text" field.

# Examples
Message: "I want to buy 2 reinforcements"
Response: {{"text": "2"}}

Message: "Help me purchase 5 reinforcements"
Response: {{"text": "5"}}

Message: "I want to buy a reinforcement"
Response: {{"text": "1"}}

# Important Rules
1. The text field holds a single number and nothing else
2. If no specific number is mentioned, use "1"
3. Do not include any additional text, punctuation, or explanation
"""


class PurchaseReinforcementAction(Action):
    name = "PURCHASE_REINFORCEMENT"
    description = "Purchase reinforcements for your outposts in the current game"
    similes = ["BUY_REINFORCEMENT", "GET_REINFORCEMENT", "ACQUIRE_REINFORCEMENT"]
    failure_verb = "purchasing reinforcement"

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        game_id = await self.require_game_id(ctx)

        if ctx.settings.reinforcement_price <= 0:
            raise PreconditionFailedError(
                "Reinforcement purchases are unavailable: no reinforcement price is configured."
            )

        intent = await ctx.extractor.extract(PURCHASE_REINFORCEMENT_TEMPLATE, text, parse_count)
        if intent is None:
            raise UserInputError(
                "Could not understand your purchase request. "
                "Please tell me how many reinforcements you want to purchase."
            )
        count = intent.count

        total = ctx.settings.to_minor_units(ctx.settings.reinforcement_price * count)
        spender = ctx.settings.reinforcement_address
        balance = await ctx.starknet.balance_of(wallet_address)
        allowance = await ctx.starknet.allowance(wallet_address, spender)
        logger.info(f"Reinforcement purchase x{count}: total={total} balance={balance} allowance={allowance}")

        if balance < total:
            raise PreconditionFailedError(
                f"Insufficient $LORDS balance to purchase {plural(count, 'reinforcement')}. "
                f"You need {ctx.settings.format_lords(total)} $LORDS but only have "
                f"{ctx.settings.format_lords(balance)}."
            )

        approve = ctx.starknet.build_approve_call(spender, total) if allowance < total else None
        purchase = ctx.starknet.build_call(
            CALL_ID_PURCHASE_REINFORCEMENT, spender, "purchase", [game_id, count]
        )
        calls = ctx.assembler.fund_and_spend(approve, [purchase])

        return self.respond(
            self.signing_text(
                approve_needed=approve is not None,
                chained=ctx.assembler.sequencing == SequencingPolicy.CHAINED,
                what=f"purchase {plural(count, 'reinforcement')}",
                call_count=1,
            ),
            calls,
        )
