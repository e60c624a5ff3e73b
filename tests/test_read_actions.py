"""
Tests for the informational actions: active game, balance and outposts.
"""

import asyncio
from unittest.mock import AsyncMock

from actions.get_active_game import GetActiveGameAction
from actions.get_balance import GetBalanceAction
from actions.get_outposts import GetOutpostsAction, summarize_outposts
from agents.tools.luna_errors import IndexQueryError
from tests.conftest import GAME_ID, WALLET, make_outpost


class TestGetActiveGame:

    def test_preparation_includes_eta(self, make_context, mock_starknet):
        # Block 150, play at 200, 30s blocks -> 25 minutes
        ctx = make_context()

        async def run():
            response = await GetActiveGameAction().run(ctx, WALLET, "what's the active game?")
            assert response.success is True
            assert GAME_ID in response.text
            assert "preparation phase" in response.text
            assert "0 hours and 25 minutes" in response.text
            mock_starknet.fetch_average_block_time.assert_awaited_once()

        asyncio.run(run())

    def test_active_phase_has_no_eta(self, make_context, mock_starknet):
        mock_starknet.latest_block = AsyncMock(return_value=500)
        ctx = make_context()

        async def run():
            response = await GetActiveGameAction().run(ctx, WALLET, "current game?")
            assert "active phase" in response.text
            assert "will start" not in response.text

        asyncio.run(run())

    def test_no_active_game(self, make_context, mock_torii):
        mock_torii.get_active_game = AsyncMock(return_value=None)
        ctx = make_context()

        async def run():
            response = await GetActiveGameAction().run(ctx, WALLET, "current game?")
            assert response.text == "There is no active game at the moment."

        asyncio.run(run())

    def test_index_failure(self, make_context, mock_torii):
        mock_torii.get_phase_thresholds = AsyncMock(side_effect=IndexQueryError("boom"))
        ctx = make_context()

        async def run():
            response = await GetActiveGameAction().run(ctx, WALLET, "current game?")
            assert response.success is False
            assert "try again" in response.text

        asyncio.run(run())


class TestGetBalance:

    def test_formats_minor_units(self, make_context, mock_starknet, settings):
        settings.token_decimals = 18
        mock_starknet.balance_of = AsyncMock(return_value=1500 * 10 ** 15)
        ctx = make_context()

        async def run():
            response = await GetBalanceAction().run(ctx, WALLET, "balance?")
            assert response.text == "Your $LORDS balance is 1.5"

        asyncio.run(run())

    def test_unexpected_error_is_reported(self, make_context, mock_starknet):
        mock_starknet.balance_of = AsyncMock(side_effect=RuntimeError("kaboom"))
        ctx = make_context()

        async def run():
            response = await GetBalanceAction().run(ctx, WALLET, "balance?")
            assert response.success is False
            assert response.text == "Error getting balance: kaboom"

        asyncio.run(run())


class TestOutpostSummary:

    def test_no_outposts_suggests_purchase(self):
        assert "Purchase one" in summarize_outposts([], 0)

    def test_lists_outposts_and_suggests_reinforcing(self):
        text = summarize_outposts([make_outpost(1, 2), make_outpost(3, 4, reinforcement_slots_remaining=0)], 4)
        assert "2 outposts" in text
        assert "Location: [1, 2]" in text
        assert "4 reinforcements available" in text
        assert "reinforce outpost #1" in text
        assert '"Unprotected"' in text

    def test_no_reinforcements_suggests_buying(self):
        text = summarize_outposts([make_outpost(1, 2)], 0)
        assert "Consider purchasing more" in text

    def test_after_transaction_lead(self, make_context):
        ctx = make_context()

        async def run():
            response = await GetOutpostsAction(after_transaction=True).run(ctx, WALLET, "")
            assert response.text.startswith("The transaction was successful")

        asyncio.run(run())
