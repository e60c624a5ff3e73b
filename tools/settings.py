"""
Settings — environment configuration for Luna.

Everything deployment-specific (indexer URL, contract addresses, prices)
comes from the environment / .env, read once at startup.

Env vars:
  TORII_URL                        Torii GraphQL endpoint
  STARKNET_PROVIDER_URL            Starknet JSON-RPC endpoint
  STARKNET_FEEDER_GATEWAY_URL      Feeder gateway get_block URL (block times)
  STARKNET_CONTRACT_ADDRESS        $LORDS token contract
  STARKNET_OUTPOST_ADDRESS         Outpost game contract
  STARKNET_REINFORCEMENT_ADDRESS   Reinforcement game contract
  STARKNET_MARKET_ADDRESS          Outpost market contract
  STARKNET_OUTPOST_PRICE           Outpost price in $LORDS
  STARKNET_REINFORCEMENT_PRICE     Reinforcement price in $LORDS
  LORDS_DECIMALS                   Token decimals (default 18)
  GEMINI_API_KEY / LUNA_MODEL_ID   Language model access
  LUNA_CACHE_TTL_SECONDS           TTL for active game id / block time (default 1 day)
  LUNA_ALLOWANCE_SEQUENCING        "chained" (default) or "siblings"
  LUNA_MAX_PURCHASE_COUNT          Most outposts bought in one request (default 20)
  LUNA_HOST / LUNA_PORT            HTTP bind address
  LUNA_CHARACTER_FILE              Persona YAML
"""

import os
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv

from tools.call_chain import SequencingPolicy

logger = logging.getLogger('Settings')

ONE_DAY_SECONDS = 60 * 60 * 24
DEFAULT_FEEDER_GATEWAY = "https://alpha-sepolia.starknet.io/feeder_gateway/get_block"


@dataclass
class LunaSettings:
    torii_url: str = ""
    provider_url: str = ""
    feeder_gateway_url: str = DEFAULT_FEEDER_GATEWAY
    token_address: str = ""
    outpost_address: str = ""
    reinforcement_address: str = ""
    market_address: str = ""
    outpost_price: Decimal = Decimal("0")
    reinforcement_price: Decimal = Decimal("0")
    token_decimals: int = 18
    gemini_api_key: Optional[str] = None
    model_id: str = "gemini-2.0-flash"
    cache_ttl_seconds: int = ONE_DAY_SECONDS
    sequencing: SequencingPolicy = SequencingPolicy.CHAINED
    max_purchase_count: int = 20
    host: str = "0.0.0.0"
    port: int = 3111
    character_file: str = "characters/luna.yaml"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "LunaSettings":
        if load_env_file:
            load_dotenv()

        raw_policy = os.getenv("LUNA_ALLOWANCE_SEQUENCING", SequencingPolicy.CHAINED.value)
        try:
            sequencing = SequencingPolicy(raw_policy.strip().lower())
        except ValueError:
            logger.warning(f"Unknown sequencing policy '{raw_policy}', using chained")
            sequencing = SequencingPolicy.CHAINED

        settings = cls(
            torii_url=os.getenv("TORII_URL", ""),
            provider_url=os.getenv("STARKNET_PROVIDER_URL", ""),
            feeder_gateway_url=os.getenv("STARKNET_FEEDER_GATEWAY_URL", DEFAULT_FEEDER_GATEWAY),
            token_address=os.getenv("STARKNET_CONTRACT_ADDRESS", ""),
            outpost_address=os.getenv("STARKNET_OUTPOST_ADDRESS", ""),
            reinforcement_address=os.getenv("STARKNET_REINFORCEMENT_ADDRESS", ""),
            market_address=os.getenv("STARKNET_MARKET_ADDRESS", ""),
            outpost_price=Decimal(os.getenv("STARKNET_OUTPOST_PRICE", "0")),
            reinforcement_price=Decimal(os.getenv("STARKNET_REINFORCEMENT_PRICE", "0")),
            token_decimals=int(os.getenv("LORDS_DECIMALS", "18")),
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            model_id=os.getenv("LUNA_MODEL_ID", "gemini-2.0-flash"),
            cache_ttl_seconds=int(os.getenv("LUNA_CACHE_TTL_SECONDS", str(ONE_DAY_SECONDS))),
            sequencing=sequencing,
            max_purchase_count=int(os.getenv("LUNA_MAX_PURCHASE_COUNT", "20")),
            host=os.getenv("LUNA_HOST", "0.0.0.0"),
            port=int(os.getenv("LUNA_PORT", "3111")),
            character_file=os.getenv("LUNA_CHARACTER_FILE", "characters/luna.yaml"),
        )

        for name in ("torii_url", "provider_url", "token_address", "outpost_address"):
            if not getattr(settings, name):
                logger.warning(f"{name} is not configured; related actions will fail.")
        for name in ("outpost_price", "reinforcement_price"):
            if getattr(settings, name) <= 0:
                logger.warning(f"{name} is not configured; those purchases will be refused.")
        return settings

    def to_minor_units(self, amount: Decimal) -> int:
        """Convert a whole-token amount to the token's smallest unit."""
        return int(Decimal(amount) * (Decimal(10) ** self.token_decimals))

    def format_lords(self, minor_units: int) -> str:
        value = Decimal(minor_units) / (Decimal(10) ** self.token_decimals)
        text = f"{value:f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text
