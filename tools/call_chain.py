"""
Call-Chain Assembler — turns validated intents into an ordered call list.

Two explicit policies live here:

  SequencingPolicy — how a spend is ordered behind the approve call that
      funds it. CHAINED puts the spend calls in the approve call's
      `nextCalls`, so the executor waits for the approve to confirm.
      SIBLINGS lists them after it at the same level.

  BatchPolicy — what a multi-target action does when one target does
      not resolve. BATCH_ATOMIC refuses the whole batch,
      PER_ITEM_BEST_EFFORT drops the bad target and keeps the rest.
"""

import logging
from enum import Enum
from typing import Iterator, List, Optional

from models.contract_call import ContractCall

logger = logging.getLogger('CallChain')

# Wire ids the chat client reports back after sending
CALL_ID_INCREASE_ALLOWANCE = "increase_allowance"
CALL_ID_PURCHASE_OUTPOST = "purchase_outpost"
CALL_ID_PURCHASE_REINFORCEMENT = "purchase_reinforcement"
CALL_ID_REINFORCE_OUTPOST = "reinforce_outpost"
CALL_ID_SELL_OUTPOST = "sell_outpost"
CALL_ID_REVOKE_OUTPOST_SALE = "revoke_outpost_sale"


class SequencingPolicy(str, Enum):
    CHAINED = "chained"
    SIBLINGS = "siblings"


class BatchPolicy(str, Enum):
    BATCH_ATOMIC = "batch_atomic"
    PER_ITEM_BEST_EFFORT = "per_item_best_effort"


class CallChainAssembler:
    """Builds the final call list handed to the wallet executor."""

    def __init__(self, sequencing: SequencingPolicy = SequencingPolicy.CHAINED):
        self.sequencing = sequencing

    def fund_and_spend(
        self,
        approve_call: Optional[ContractCall],
        spend_calls: List[ContractCall],
    ) -> List[ContractCall]:
        """Order spend calls behind an optional approve call.

        Without an approve call the spends are returned as independent calls.
        """
        if approve_call is None:
            return list(spend_calls)

        if self.sequencing == SequencingPolicy.CHAINED:
            chained = approve_call.model_copy(
                update={"next_calls": list(approve_call.next_calls) + list(spend_calls)}
            )
            logger.info(f"Chained {len(spend_calls)} call(s) behind {approve_call.id}")
            return [chained]

        return [approve_call] + list(spend_calls)

    @staticmethod
    def fan_out(call: ContractCall, count: int) -> List[ContractCall]:
        """Repeat a per-unit call `count` times (one transaction per unit)."""
        return [call.model_copy(deep=True) for _ in range(count)]


def flatten_calls(calls: List[ContractCall]) -> Iterator[ContractCall]:
    """Yield calls in execution order: each parent before its children."""
    for call in calls:
        yield call
        yield from flatten_calls(call.next_calls)


def count_calls(calls: List[ContractCall]) -> int:
    return sum(1 for _ in flatten_calls(calls))
