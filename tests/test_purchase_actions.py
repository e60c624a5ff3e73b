"""
Tests for actions/purchase_outpost.py and actions/purchase_reinforcement.py.

Prices in the test settings: outpost 50, reinforcement 10, decimals 0.
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

from actions.purchase_outpost import PurchaseOutpostAction
from actions.purchase_reinforcement import PurchaseReinforcementAction
from agents.tools.luna_errors import LedgerReadError
from tests.conftest import (
    GAME_ID,
    MockGeminiClient,
    OUTPOST_ADDRESS,
    REINFORCEMENT_ADDRESS,
    TOKEN_ADDRESS,
    WALLET,
    text_response,
)
from tools.call_chain import SequencingPolicy, flatten_calls


class TestPurchaseOutpostPhase:

    def test_denied_outside_preparation(self, make_context, mock_starknet):
        mock_starknet.latest_block = AsyncMock(return_value=250)
        ctx = make_context([text_response("1")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy an outpost")
            assert response.success is False
            assert response.contract_calls is None
            assert "preparation" in response.text
            # Balance is never consulted once the phase denies
            mock_starknet.balance_of.assert_not_awaited()

        asyncio.run(run())

    def test_denied_when_phase_unreadable(self, make_context, mock_starknet):
        mock_starknet.latest_block = AsyncMock(side_effect=LedgerReadError("rpc down"))
        ctx = make_context([text_response("1")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy an outpost")
            assert response.success is False
            assert response.contract_calls is None

        asyncio.run(run())

    def test_no_active_game(self, make_context, mock_torii):
        mock_torii.get_active_game = AsyncMock(return_value=None)
        ctx = make_context([text_response("1")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy an outpost")
            assert response.success is False
            assert response.text == "No active game id found"

        asyncio.run(run())


class TestPurchaseOutpostFunds:

    def test_two_outposts_exactly_affordable(self, make_context, mock_starknet):
        mock_starknet.balance_of = AsyncMock(return_value=100)
        mock_starknet.allowance = AsyncMock(return_value=100)
        ctx = make_context([text_response("2")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy 2 outposts")
            assert response.success is True
            assert len(response.contract_calls) == 2
            for call in response.contract_calls:
                assert call.id == "purchase_outpost"
                assert call.contract_address == OUTPOST_ADDRESS
                assert call.entrypoint == "purchase"
                assert call.calldata == [GAME_ID]
                assert call.next_calls == []

        asyncio.run(run())

    def test_three_outposts_insufficient_balance(self, make_context, mock_starknet):
        mock_starknet.balance_of = AsyncMock(return_value=100)
        ctx = make_context([text_response("3")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy 3 outposts")
            assert response.success is False
            assert response.contract_calls is None
            assert "Insufficient" in response.text

        asyncio.run(run())

    def test_short_allowance_adds_approve_first(self, make_context, mock_starknet):
        mock_starknet.balance_of = AsyncMock(return_value=100)
        mock_starknet.allowance = AsyncMock(return_value=40)
        ctx = make_context([text_response("1")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy an outpost")
            assert response.success is True
            ordered = list(flatten_calls(response.contract_calls))
            assert [c.id for c in ordered] == ["increase_allowance", "purchase_outpost"]
            approve = ordered[0]
            assert approve.contract_address == TOKEN_ADDRESS
            assert approve.entrypoint == "approve"
            assert approve.calldata == [OUTPOST_ADDRESS, "50", "0"]
            # Chained: the purchase waits for the approve
            assert len(response.contract_calls) == 1
            assert response.contract_calls[0].next_calls[0].id == "purchase_outpost"

        asyncio.run(run())

    def test_sibling_sequencing(self, make_context, mock_starknet):
        mock_starknet.allowance = AsyncMock(return_value=0)
        ctx = make_context([text_response("2")], sequencing=SequencingPolicy.SIBLINGS)

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy 2 outposts")
            assert [c.id for c in response.contract_calls] == [
                "increase_allowance", "purchase_outpost", "purchase_outpost",
            ]
            assert response.contract_calls[0].calldata == [OUTPOST_ADDRESS, "100", "0"]

        asyncio.run(run())

    def test_minor_units_use_token_decimals(self, make_context, mock_starknet, settings):
        settings.token_decimals = 18
        settings.outpost_price = Decimal("50")
        mock_starknet.balance_of = AsyncMock(return_value=10 ** 21)
        mock_starknet.allowance = AsyncMock(return_value=0)
        ctx = make_context([text_response("1")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy an outpost")
            approve = response.contract_calls[0]
            assert approve.calldata == [OUTPOST_ADDRESS, str(50 * 10 ** 18), "0"]

        asyncio.run(run())

    def test_unpriced_outposts_are_refused(self, make_context, settings):
        settings.outpost_price = Decimal("0")
        gemini = MockGeminiClient([text_response("5")])
        ctx = make_context(gemini=gemini)

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy 5 outposts")
            assert response.success is False
            assert response.contract_calls is None
            assert "no outpost price" in response.text
            assert gemini.call_count == 0

        asyncio.run(run())

    def test_count_above_limit_asks_for_fewer(self, make_context, mock_starknet, settings):
        settings.max_purchase_count = 3
        mock_starknet.balance_of = AsyncMock(return_value=10 ** 6)
        ctx = make_context([text_response("4")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy 4 outposts")
            assert response.success is False
            assert response.contract_calls is None
            assert response.error == "Invalid request"
            assert "at most 3 outposts" in response.text
            mock_starknet.balance_of.assert_not_awaited()

        asyncio.run(run())

    def test_unclear_request_asks_for_clarification(self, make_context):
        ctx = make_context(["garbage"])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "hmm outposts?")
            assert response.success is False
            assert response.contract_calls is None
            assert "how many outposts" in response.text

        asyncio.run(run())

    def test_balance_read_failure_is_reported(self, make_context, mock_starknet):
        mock_starknet.balance_of = AsyncMock(side_effect=LedgerReadError("rpc down"))
        ctx = make_context([text_response("1")])

        async def run():
            response = await PurchaseOutpostAction().run(ctx, WALLET, "buy an outpost")
            assert response.success is False
            assert response.contract_calls is None
            assert "try again" in response.text

        asyncio.run(run())


class TestPurchaseReinforcement:

    def test_single_call_with_count(self, make_context, mock_starknet):
        mock_starknet.allowance = AsyncMock(return_value=1000)
        ctx = make_context([text_response("5")])

        async def run():
            response = await PurchaseReinforcementAction().run(ctx, WALLET, "buy 5 reinforcements")
            assert response.success is True
            assert len(response.contract_calls) == 1
            call = response.contract_calls[0]
            assert call.id == "purchase_reinforcement"
            assert call.contract_address == REINFORCEMENT_ADDRESS
            assert call.calldata == [GAME_ID, "5"]

        asyncio.run(run())

    def test_allowed_outside_preparation(self, make_context, mock_starknet):
        mock_starknet.latest_block = AsyncMock(return_value=250)
        ctx = make_context([text_response("1")])

        async def run():
            response = await PurchaseReinforcementAction().run(ctx, WALLET, "buy a reinforcement")
            assert response.success is True

        asyncio.run(run())

    def test_approve_for_reinforcement_contract(self, make_context, mock_starknet):
        mock_starknet.allowance = AsyncMock(return_value=0)
        ctx = make_context([text_response("3")])

        async def run():
            response = await PurchaseReinforcementAction().run(ctx, WALLET, "buy 3 reinforcements")
            ordered = list(flatten_calls(response.contract_calls))
            assert [c.id for c in ordered] == ["increase_allowance", "purchase_reinforcement"]
            assert ordered[0].calldata == [REINFORCEMENT_ADDRESS, "30", "0"]
            mock_starknet.allowance.assert_awaited_once_with(WALLET, REINFORCEMENT_ADDRESS)

        asyncio.run(run())

    def test_insufficient_balance(self, make_context, mock_starknet):
        mock_starknet.balance_of = AsyncMock(return_value=29)
        ctx = make_context([text_response("3")])

        async def run():
            response = await PurchaseReinforcementAction().run(ctx, WALLET, "buy 3 reinforcements")
            assert response.success is False
            assert response.contract_calls is None

        asyncio.run(run())

    def test_unpriced_reinforcements_are_refused(self, make_context, settings):
        settings.reinforcement_price = Decimal("0")
        ctx = make_context([text_response("3")])

        async def run():
            response = await PurchaseReinforcementAction().run(ctx, WALLET, "buy 3 reinforcements")
            assert response.success is False
            assert response.contract_calls is None
            assert "no reinforcement price" in response.text

        asyncio.run(run())
