"""
Starknet Client — ledger reads over JSON-RPC plus contract-call builders.

Reads: latest block, $LORDS balance, allowance, transaction receipts,
average block time (feeder gateway). Writes are never sent from here:
the builders only describe calls for the player's wallet to sign.

Architecture:
  Luna  --(JSON-RPC starknet_call)-->  RPC node
  Luna  --(ContractCall payloads)-->   chat client  -->  wallet
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from Crypto.Hash import keccak

from agents.tools.json_http import JsonPostClient
from agents.tools.luna_errors import LedgerReadError, StateUnavailableError
from models.contract_call import ContractCall
from models.game import parse_felt_int
from tools.call_chain import CALL_ID_INCREASE_ALLOWANCE
from tools.rate_limiter import rpc_limiter

logger = logging.getLogger('StarknetClient')

MASK_250 = (1 << 250) - 1
UINT128 = 1 << 128

# JSON-RPC error code for an unknown (not yet seen) transaction hash
TXN_HASH_NOT_FOUND = 29

DEFAULT_BLOCK_TIME_SECONDS = 60.0
BLOCKS_TO_AVERAGE = 10


def get_selector_from_name(name: str) -> str:
    """Entry point selector: starknet_keccak (keccak-256 masked to 250 bits)."""
    digest = keccak.new(digest_bits=256, data=name.encode("ascii")).digest()
    return hex(int.from_bytes(digest, "big") & MASK_250)


def split_uint256(value: int) -> Tuple[int, int]:
    """Split a u256 into its (low, high) 128-bit felts."""
    if value < 0:
        raise ValueError("u256 cannot be negative")
    return value % UINT128, value // UINT128


def join_uint256(low: Any, high: Any) -> int:
    return parse_felt_int(low) + parse_felt_int(high) * UINT128


class StarknetClient(JsonPostClient):
    """Async Starknet JSON-RPC client with Rising Revenant call builders.

    Args:
        provider_url: JSON-RPC endpoint.
        token_address: $LORDS ERC-20 contract.
        outpost_address / reinforcement_address / market_address: game contracts.
        feeder_gateway_url: get_block endpoint used for block timestamps.
    """

    error_class = LedgerReadError

    def __init__(
        self,
        provider_url: str,
        token_address: str = "",
        outpost_address: str = "",
        reinforcement_address: str = "",
        market_address: str = "",
        feeder_gateway_url: str = "",
    ):
        super().__init__(provider_url, limiter=rpc_limiter, name="StarknetRPC")
        self.token_address = token_address
        self.outpost_address = outpost_address
        self.reinforcement_address = reinforcement_address
        self.market_address = market_address
        self.feeder_gateway_url = feeder_gateway_url
        self._request_id = 0

    # ------------------------------------------------------------------
    # JSON-RPC
    # ------------------------------------------------------------------

    async def rpc(self, method: str, params: Any = None) -> Any:
        self._request_id += 1
        payload = await self._post({
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params if params is not None else [],
        })
        if not isinstance(payload, dict):
            raise LedgerReadError(f"Unexpected RPC response for {method}: {payload!r}")
        if payload.get("error"):
            error = payload["error"]
            raise LedgerReadError(f"{method} failed: {error.get('message', error)}", code=error.get("code"))
        return payload.get("result")

    async def call(self, contract_address: str, entrypoint: str, calldata: List[Any]) -> List[str]:
        """Read-only contract call at the latest block."""
        if not contract_address:
            raise LedgerReadError(f"No contract address configured for {entrypoint}")
        result = await self.rpc("starknet_call", {
            "request": {
                "contract_address": contract_address,
                "entry_point_selector": get_selector_from_name(entrypoint),
                "calldata": [hex(parse_felt_int(c)) for c in calldata],
            },
            "block_id": "latest",
        })
        return list(result or [])

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def latest_block(self) -> int:
        result = await self.rpc("starknet_blockNumber")
        return parse_felt_int(result)

    async def balance_of(self, address: str) -> int:
        """$LORDS balance in minor units."""
        result = await self.call(self.token_address, "balance_of", [address])
        return self._read_u256(result, "balance_of")

    async def allowance(self, owner: str, spender: str) -> int:
        """Amount `spender` may still pull from `owner`, in minor units."""
        result = await self.call(self.token_address, "allowance", [owner, spender])
        return self._read_u256(result, "allowance")

    @staticmethod
    def _read_u256(result: List[str], entrypoint: str) -> int:
        if not result:
            return 0
        if len(result) == 1:
            return parse_felt_int(result[0])
        try:
            return join_uint256(result[0], result[1])
        except ValueError as e:
            raise LedgerReadError(f"Bad u256 from {entrypoint}: {result}") from e

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Receipt for a transaction, or None if the node has not seen it yet."""
        try:
            return await self.rpc("starknet_getTransactionReceipt", {"transaction_hash": tx_hash})
        except LedgerReadError as e:
            if e.code == TXN_HASH_NOT_FOUND:
                return None
            raise

    async def wait_for_transaction(
        self,
        tx_hash: str,
        poll_interval: float = 3.0,
        timeout: float = 180.0,
    ) -> bool:
        """Poll until the transaction is accepted (True) or reverted (False).

        Raises LedgerReadError on timeout.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt:
                execution = str(receipt.get("execution_status", "")).upper()
                finality = str(receipt.get("finality_status", "")).upper()
                if execution == "REVERTED":
                    logger.warning(f"Transaction {tx_hash} reverted: {receipt.get('revert_reason')}")
                    return False
                if execution == "SUCCEEDED" and finality.startswith("ACCEPTED"):
                    logger.info(f"Transaction {tx_hash} confirmed ({finality})")
                    return True
            if loop.time() >= deadline:
                raise LedgerReadError(f"Timed out waiting for transaction {tx_hash}")
            await asyncio.sleep(poll_interval)

    async def fetch_average_block_time(self, blocks: int = BLOCKS_TO_AVERAGE) -> float:
        """Average seconds per block over the last `blocks` blocks.

        Only used for ETA text, so a failure falls back to 60s.
        """
        if not self.feeder_gateway_url:
            return DEFAULT_BLOCK_TIME_SECONDS
        try:
            await self.limiter.acquire()
            latest = await self._raw_get(self.feeder_gateway_url)
            latest_number = int(latest["block_number"])
            older = await self._raw_get(
                self.feeder_gateway_url, params={"blockNumber": latest_number - blocks}
            )
            elapsed = int(latest["timestamp"]) - int(older["timestamp"])
            if elapsed <= 0:
                return DEFAULT_BLOCK_TIME_SECONDS
            return elapsed / blocks
        except (StateUnavailableError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Could not compute average block time, using default: {e}")
            return DEFAULT_BLOCK_TIME_SECONDS

    # ------------------------------------------------------------------
    # Call builders (nothing is sent)
    # ------------------------------------------------------------------

    def build_approve_call(self, spender: str, amount: int) -> ContractCall:
        low, high = split_uint256(amount)
        return ContractCall(
            id=CALL_ID_INCREASE_ALLOWANCE,
            contract_address=self.token_address,
            calldata=[spender, str(low), str(high)],
            entrypoint="approve",
        )

    @staticmethod
    def build_call(call_id: str, contract_address: str, entrypoint: str,
                   calldata: List[Any]) -> ContractCall:
        return ContractCall(
            id=call_id,
            contract_address=contract_address,
            calldata=[str(c) for c in calldata],
            entrypoint=entrypoint,
        )
