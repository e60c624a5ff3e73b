"""
Tests for tools/transaction_runner.py — confirmation-driven call chains.
"""

import asyncio
from unittest.mock import AsyncMock

from models.contract_call import ContractCall
from server.agent import LunaAgent
from tests.conftest import MockGeminiClient
from tools.persona import DEFAULT_PERSONA
from tools.transaction_runner import CallChainRunner, TxState


def _call(call_id: str, *children: ContractCall) -> ContractCall:
    return ContractCall(id=call_id, contract_address="0x1", calldata=[], entrypoint="go",
                        next_calls=list(children))


class FakeWallet:
    """Submits calls in order and confirms unless told otherwise."""

    def __init__(self, reverted=(), rejected=()):
        self.reverted = set(reverted)
        self.rejected = set(rejected)
        self.events = []

    async def submit(self, call: ContractCall) -> str:
        if call.id in self.rejected:
            raise RuntimeError("user rejected")
        self.events.append(("submit", call.id))
        return f"0xhash_{call.id}"

    async def confirm(self, tx_hash: str) -> bool:
        call_id = tx_hash.replace("0xhash_", "")
        self.events.append(("confirmed", call_id))
        return call_id not in self.reverted


class TestCallChainRunner:

    def test_child_submitted_after_parent_confirms(self):
        wallet = FakeWallet()
        runner = CallChainRunner(wallet.submit, wallet.confirm)

        async def run():
            tracked = await runner.run([_call("approve", _call("buy1"), _call("buy2"))])
            assert wallet.events == [
                ("submit", "approve"), ("confirmed", "approve"),
                ("submit", "buy1"), ("confirmed", "buy1"),
                ("submit", "buy2"), ("confirmed", "buy2"),
            ]
            assert tracked[0].state == TxState.DONE
            assert all(child.succeeded for child in tracked[0].children)
            assert tracked[0].tx_hash == "0xhash_approve"

        asyncio.run(run())

    def test_reverted_parent_fails_descendants_without_submitting(self):
        wallet = FakeWallet(reverted={"approve"})
        runner = CallChainRunner(wallet.submit, wallet.confirm)

        async def run():
            tracked = await runner.run([_call("approve", _call("buy", _call("after")))])
            assert ("submit", "buy") not in wallet.events
            root = tracked[0]
            assert root.state == TxState.FAILED
            assert root.children[0].state == TxState.FAILED
            assert root.children[0].children[0].state == TxState.FAILED

        asyncio.run(run())

    def test_rejected_submit_fails_call(self):
        wallet = FakeWallet(rejected={"approve"})
        runner = CallChainRunner(wallet.submit, wallet.confirm)

        async def run():
            tracked = await runner.run([_call("approve", _call("buy"))])
            assert tracked[0].state == TxState.FAILED
            assert "user rejected" in tracked[0].error
            assert wallet.events == []

        asyncio.run(run())

    def test_confirmation_timeout_fails_call(self):
        wallet = FakeWallet()

        async def timeout(tx_hash):
            raise asyncio.TimeoutError()

        runner = CallChainRunner(wallet.submit, timeout)

        async def run():
            tracked = await runner.run([_call("approve", _call("buy"))])
            assert tracked[0].state == TxState.FAILED
            assert tracked[0].children[0].state == TxState.FAILED

        asyncio.run(run())

    def test_siblings_are_independent(self):
        wallet = FakeWallet(reverted={"sell1"})
        runner = CallChainRunner(wallet.submit, wallet.confirm)

        async def run():
            tracked = await runner.run([_call("sell1"), _call("sell2")])
            assert tracked[0].state == TxState.FAILED
            assert tracked[1].state == TxState.DONE

        asyncio.run(run())

    def test_failed_child_marks_parent_failed(self):
        wallet = FakeWallet(reverted={"buy2"})
        runner = CallChainRunner(wallet.submit, wallet.confirm)

        async def run():
            tracked = await runner.run([_call("approve", _call("buy1"), _call("buy2"))])
            assert tracked[0].children[0].state == TxState.DONE
            assert tracked[0].children[1].state == TxState.FAILED
            assert tracked[0].state == TxState.FAILED

        asyncio.run(run())

    def test_transition_hook_sees_every_state(self):
        wallet = FakeWallet()
        seen = []
        runner = CallChainRunner(wallet.submit, wallet.confirm,
                                 on_transition=lambda t: seen.append((t.call.id, t.state)))

        async def run():
            await runner.run([_call("approve", _call("buy"))])
            assert seen == [
                ("approve", TxState.SUBMITTED),
                ("approve", TxState.CONFIRMED),
                ("approve", TxState.NEXT_SUBMITTED),
                ("buy", TxState.SUBMITTED),
                ("buy", TxState.CONFIRMED),
                ("buy", TxState.DONE),
                ("approve", TxState.DONE),
            ]

        asyncio.run(run())


class TestAgentRunner:

    def test_agent_runner_confirms_against_starknet(self, settings, mock_torii, mock_starknet):
        mock_starknet.wait_for_transaction = AsyncMock(side_effect=[True, False])
        agent = LunaAgent(settings, gemini_client=MockGeminiClient([]), persona=DEFAULT_PERSONA,
                          torii=mock_torii, starknet=mock_starknet)
        wallet = FakeWallet()
        runner = agent.call_runner(wallet.submit)

        async def run():
            tracked = await runner.run([_call("approve", _call("buy"))])
            assert [c.args[0] for c in mock_starknet.wait_for_transaction.await_args_list] == [
                "0xhash_approve", "0xhash_buy",
            ]
            assert tracked[0].children[0].state == TxState.FAILED
            assert tracked[0].state == TxState.FAILED

        asyncio.run(run())
