"""GET_BALANCE — the player's $LORDS balance."""

from actions.base import Action, ActionContext
from models.contract_call import ActionResponse


class GetBalanceAction(Action):
    name = "GET_BALANCE"
    description = "Get the $LORDS balance of the player's wallet"
    similes = ["BALANCE", "CURRENT_BALANCE", "CHECK_BALANCE"]
    failure_verb = "getting balance"

    async def handle(self, ctx: ActionContext, wallet_address: str, text: str) -> ActionResponse:
        balance = await ctx.starknet.balance_of(wallet_address)
        return self.respond(f"Your $LORDS balance is {ctx.settings.format_lords(balance)}")
