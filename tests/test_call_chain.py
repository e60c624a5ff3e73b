"""
Tests for models/contract_call.py and tools/call_chain.py.
"""

from agents.tools.starknet_client import StarknetClient, get_selector_from_name, join_uint256, split_uint256
from models.contract_call import ActionResponse, ContractCall
from tools.call_chain import CallChainAssembler, SequencingPolicy, count_calls, flatten_calls


def _call(call_id: str, *children: ContractCall) -> ContractCall:
    return ContractCall(id=call_id, contract_address="0x1", calldata=[1, "2"], entrypoint="go",
                        next_calls=list(children))


class TestContractCallWire:

    def test_wire_shape_is_camel_case(self):
        wire = _call("a").to_wire()
        assert wire == {"id": "a", "contractAddress": "0x1", "calldata": ["1", "2"], "entrypoint": "go"}

    def test_nested_next_calls_survive_wire(self):
        tree = _call("approve", _call("buy1"), _call("buy2", _call("after")))
        restored = ContractCall.from_wire(tree.to_wire())
        assert restored == tree
        assert [c.id for c in flatten_calls([restored])] == ["approve", "buy1", "buy2", "after"]

    def test_action_response_message(self):
        msg = ActionResponse(text="hi", action="X", contract_calls=[_call("a")]).to_message()
        assert msg["user"] == "Luna"
        assert msg["contractCalls"][0]["id"] == "a"

    def test_denial_message_has_error_and_no_calls(self):
        msg = ActionResponse(text="no", action="X", success=False, error="nope").to_message()
        assert "contractCalls" not in msg
        assert msg["content"] == {"error": "nope"}


class TestAssembler:

    def test_no_approve_returns_spends(self):
        spends = [_call("buy"), _call("buy")]
        assert CallChainAssembler().fund_and_spend(None, spends) == spends

    def test_chained_nests_spends_under_approve(self):
        result = CallChainAssembler(SequencingPolicy.CHAINED).fund_and_spend(_call("approve"), [_call("buy")] * 2)
        assert len(result) == 1
        assert [c.id for c in result[0].next_calls] == ["buy", "buy"]

    def test_siblings_lists_approve_first(self):
        result = CallChainAssembler(SequencingPolicy.SIBLINGS).fund_and_spend(_call("approve"), [_call("buy")])
        assert [c.id for c in result] == ["approve", "buy"]
        assert result[0].next_calls == []

    def test_chaining_does_not_mutate_approve(self):
        approve = _call("approve")
        CallChainAssembler().fund_and_spend(approve, [_call("buy")])
        assert approve.next_calls == []

    def test_fan_out_copies(self):
        copies = CallChainAssembler.fan_out(_call("buy"), 3)
        assert len(copies) == 3
        assert copies[0] is not copies[1]

    def test_count_calls(self):
        assert count_calls([_call("a", _call("b")), _call("c")]) == 3


class TestStarknetHelpers:

    def test_u256_split_round_trip(self):
        value = 5 * 2 ** 128 + 17
        assert split_uint256(value) == (17, 5)
        assert join_uint256("0x11", "0x5") == value

    def test_selector_is_masked_keccak(self):
        # Well-known Starknet selector for `transfer`
        assert get_selector_from_name("transfer") == \
            "0x83afd3f4caedc6eebf44246fe54e38c95e3179a5ec9ea81740eca5b482d12e"

    def test_approve_call(self):
        starknet = StarknetClient("http://rpc", token_address="0xtoken")
        call = starknet.build_approve_call("0xspender", 2 ** 128 + 1)
        assert call.id == "increase_allowance"
        assert call.contract_address == "0xtoken"
        assert call.calldata == ["0xspender", "1", "1"]
