"""
Shared pytest fixtures for the Luna test suite.

Index and ledger clients are real objects with their network-facing
methods replaced by AsyncMocks, so call builders and parsing run for real.
"""

import json
from decimal import Decimal

import pytest
from unittest.mock import AsyncMock

from actions.base import ActionContext
from agents.intent_extractor import IntentExtractor
from agents.tools.starknet_client import StarknetClient
from agents.tools.torii_client import ToriiClient
from models.game import Outpost, OutpostSale, PlayerInfo, Position
from tools import rate_limiter
from tools.call_chain import CallChainAssembler, SequencingPolicy
from tools.phase_gate import PhaseGate
from tools.settings import LunaSettings
from tools.ttl_cache import TTLCache

WALLET = "0xabc"
GAME_ID = "0x1"
TOKEN_ADDRESS = "0x10"
OUTPOST_ADDRESS = "0x20"
REINFORCEMENT_ADDRESS = "0x30"
MARKET_ADDRESS = "0x40"


# ---------------------------------------------------------------------------
# Gemini Mock Helpers (reusable classes)
# ---------------------------------------------------------------------------

class MockGeminiResponse:
    """Simulates a Gemini response with .text property."""

    def __init__(self, text: str):
        self.text = text


class MockGeminiClient:
    """Mock Gemini client that returns canned text responses.

    Usage:
        client = MockGeminiClient(["response1", "response2"])
        resp = await client.aio.models.generate_content(model=..., contents=...)
        assert resp.text == "response1"
    """

    def __init__(self, responses=None):
        self._responses = responses or []
        self._call_count = 0
        self.calls = []

    @property
    def aio(self):
        return self

    @property
    def models(self):
        return self

    @property
    def call_count(self):
        return self._call_count

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self._call_count < len(self._responses):
            resp = self._responses[self._call_count]
        else:
            resp = '{"error": "no more canned responses"}'
        self._call_count += 1
        if isinstance(resp, Exception):
            raise resp
        if isinstance(resp, str):
            return MockGeminiResponse(resp)
        # Allow passing pre-built response objects
        return resp


def text_response(text) -> str:
    """What the model sends back for a constrained extraction."""
    if not isinstance(text, str):
        text = json.dumps(text)
    return json.dumps({"text": text})


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_outpost(x: int, y: int, **kwargs) -> Outpost:
    data = {
        "id": f"0xop{x}{y}",
        "position": Position(x=x, y=y),
        "life": 1,
        "reinforcement_slots_remaining": 20,
        "reinforcement_type": "None",
        "owner": WALLET,
    }
    data.update(kwargs)
    return Outpost(**data)


def make_sale(trade_id: str, x: int, y: int, status: str = "selling") -> OutpostSale:
    return OutpostSale(trade_id=trade_id, seller=WALLET, status=status,
                       offer_position=Position(x=x, y=y))


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def no_rate_limits(monkeypatch):
    """Patch every shared limiter's acquire() as a no-op."""
    for limiter in (rate_limiter.gemini_limiter, rate_limiter.torii_limiter, rate_limiter.rpc_limiter):
        monkeypatch.setattr(limiter, "acquire", AsyncMock())


@pytest.fixture
def settings():
    return LunaSettings(
        torii_url="http://torii.test/graphql",
        provider_url="http://rpc.test",
        token_address=TOKEN_ADDRESS,
        outpost_address=OUTPOST_ADDRESS,
        reinforcement_address=REINFORCEMENT_ADDRESS,
        market_address=MARKET_ADDRESS,
        outpost_price=Decimal("50"),
        reinforcement_price=Decimal("10"),
        token_decimals=0,
    )


@pytest.fixture
def mock_torii():
    """ToriiClient for an active game in preparation, with one outpost."""
    torii = ToriiClient("http://torii.test/graphql")
    torii.get_active_game = AsyncMock(return_value=GAME_ID)
    torii.get_phase_thresholds = AsyncMock(return_value=(100, 200))
    torii.get_player_info = AsyncMock(return_value=PlayerInfo(
        player_id=WALLET, outpost_count=1, reinforcements_available=5, initialized=True,
    ))
    torii.get_player_outposts = AsyncMock(return_value=[make_outpost(10, 20)])
    torii.get_outpost_location_by_id = AsyncMock(return_value=None)
    torii.get_player_outpost_sales = AsyncMock(return_value=[])
    return torii


@pytest.fixture
def mock_starknet():
    """StarknetClient at block 150 with a healthy balance and no allowance."""
    starknet = StarknetClient(
        "http://rpc.test",
        token_address=TOKEN_ADDRESS,
        outpost_address=OUTPOST_ADDRESS,
        reinforcement_address=REINFORCEMENT_ADDRESS,
        market_address=MARKET_ADDRESS,
    )
    starknet.latest_block = AsyncMock(return_value=150)
    starknet.balance_of = AsyncMock(return_value=1000)
    starknet.allowance = AsyncMock(return_value=0)
    starknet.fetch_average_block_time = AsyncMock(return_value=30.0)
    return starknet


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_context(settings, mock_torii, mock_starknet, clock):
    """Build an ActionContext whose model answers with `responses` in order."""

    def _make(responses=None, sequencing=SequencingPolicy.CHAINED, gemini=None):
        client = gemini if gemini is not None else MockGeminiClient(responses or [])
        return ActionContext(
            settings=settings,
            torii=mock_torii,
            starknet=mock_starknet,
            extractor=IntentExtractor(client),
            cache=TTLCache(clock=clock),
            gate=PhaseGate(mock_torii, mock_starknet),
            assembler=CallChainAssembler(sequencing),
        )

    return _make
