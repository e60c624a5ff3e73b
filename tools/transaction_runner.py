"""
CallChainRunner — executes a call list while honouring `nextCalls` ordering.

Every call walks a small state machine:

    pending -> submitted -> confirmed -> next_submitted -> done
                  \\            \\              \\
                   +------------+--------------+--> failed

A child is submitted only after its parent's transaction is confirmed
on-chain (receipt polling, not a fixed sleep). When a parent fails, all
of its descendants are marked failed without being submitted. Siblings
are independent: one failing does not stop the next.

Signing is not done here. `submit` is whatever can put a call on-chain
(a wallet bridge, a server-side account in tests) and returns a tx hash.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, Field

from models.contract_call import ContractCall

logger = logging.getLogger('CallChainRunner')


class TxState(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    NEXT_SUBMITTED = "next_submitted"
    DONE = "done"
    FAILED = "failed"


class TrackedCall(BaseModel):
    """A call plus its progress through the state machine."""

    call: ContractCall
    state: TxState = TxState.PENDING
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    children: List["TrackedCall"] = Field(default_factory=list)

    @classmethod
    def from_call(cls, call: ContractCall) -> "TrackedCall":
        return cls(call=call, children=[cls.from_call(child) for child in call.next_calls])

    @property
    def succeeded(self) -> bool:
        return self.state == TxState.DONE


TrackedCall.model_rebuild()

SubmitFn = Callable[[ContractCall], Awaitable[str]]
ConfirmFn = Callable[[str], Awaitable[bool]]
TransitionFn = Callable[[TrackedCall], None]


class CallChainRunner:
    """Runs call chains one transaction at a time.

    Args:
        submit: Sends one call, returns its transaction hash.
        wait_for_confirmation: Resolves True once the hash is accepted,
            False if it reverted. May raise on timeout.
        on_transition: Optional hook called after every state change.
    """

    def __init__(
        self,
        submit: SubmitFn,
        wait_for_confirmation: ConfirmFn,
        on_transition: Optional[TransitionFn] = None,
    ):
        self.submit = submit
        self.wait_for_confirmation = wait_for_confirmation
        self.on_transition = on_transition

    def _move(self, tracked: TrackedCall, state: TxState, error: Optional[str] = None) -> None:
        tracked.state = state
        if error:
            tracked.error = error
        logger.info(f"[{tracked.call.id}] -> {state.value}" + (f" ({error})" if error else ""))
        if self.on_transition:
            self.on_transition(tracked)

    def _fail_subtree(self, tracked: TrackedCall, reason: str) -> None:
        for child in tracked.children:
            self._move(child, TxState.FAILED, reason)
            self._fail_subtree(child, reason)

    async def run(self, calls: List[ContractCall]) -> List[TrackedCall]:
        """Execute `calls` in order. Returns the tracked tree."""
        tracked = [TrackedCall.from_call(call) for call in calls]
        for item in tracked:
            await self._run_one(item)
        return tracked

    async def _run_one(self, tracked: TrackedCall) -> None:
        try:
            tracked.tx_hash = await self.submit(tracked.call)
        except Exception as e:
            self._move(tracked, TxState.FAILED, f"submit failed: {e}")
            self._fail_subtree(tracked, f"parent {tracked.call.id} was not submitted")
            return
        self._move(tracked, TxState.SUBMITTED)

        try:
            confirmed = await self.wait_for_confirmation(tracked.tx_hash)
        except Exception as e:
            self._move(tracked, TxState.FAILED, f"confirmation failed: {e}")
            self._fail_subtree(tracked, f"parent {tracked.call.id} was not confirmed")
            return
        if not confirmed:
            self._move(tracked, TxState.FAILED, "transaction reverted")
            self._fail_subtree(tracked, f"parent {tracked.call.id} reverted")
            return
        self._move(tracked, TxState.CONFIRMED)

        if tracked.children:
            self._move(tracked, TxState.NEXT_SUBMITTED)
            for child in tracked.children:
                await self._run_one(child)
            if not all(child.succeeded for child in tracked.children):
                self._move(tracked, TxState.FAILED, "a dependent call failed")
                return

        self._move(tracked, TxState.DONE)
