"""
Intent schemas — the structured requests pulled out of chat messages.

These never touch storage. They live for exactly one action call and
are validated here so a sloppy LLM answer becomes a clean "please
clarify" instead of a malformed contract call.
"""

import math
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.game import Position


class TextResponse(BaseModel):
    """The one-field schema every constrained generation call must fill."""

    text: str


def normalize_locations(value) -> Union[str, List[Position]]:
    """Coerce the shapes an LLM uses for coordinates into positions.

    Accepts "all", a single pair [x, y], a list of pairs [[x, y], ...],
    "x,y" strings, {"x": .., "y": ..} dicts, or a mix of those.
    """
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.lower() == "all":
            return "all"
        return [_to_position(text)]
    if isinstance(value, dict):
        return [_to_position(value)]
    if isinstance(value, (list, tuple)):
        if len(value) == 2 and all(isinstance(v, (int, float)) for v in value):
            return [_to_position(value)]
        return [_to_position(item) for item in value]
    raise ValueError(f"Unsupported locations value: {value!r}")


def _to_position(item) -> Position:
    if isinstance(item, Position):
        return item
    if isinstance(item, dict):
        if "x" not in item or "y" not in item:
            raise ValueError(f"Coordinate is missing x or y: {item!r}")
        return Position(x=item["x"], y=item["y"])
    if isinstance(item, str):
        parts = [p.strip() for p in item.strip("[]() ").split(",")]
        if len(parts) != 2:
            raise ValueError(f"Not a coordinate pair: {item!r}")
        return Position(x=int(parts[0]), y=int(parts[1]))
    if isinstance(item, (list, tuple)) and len(item) == 2:
        return Position(x=int(item[0]), y=int(item[1]))
    raise ValueError(f"Not a coordinate pair: {item!r}")


class PurchaseIntent(BaseModel):
    """How many units (outposts or reinforcements) to buy."""

    count: int = Field(ge=1)


class ReinforcementIntent(BaseModel):
    """Which outposts to reinforce, and how many reinforcements each."""

    model_config = ConfigDict(populate_by_name=True)

    outpost_ids: List[str] = Field(default_factory=list, alias="outpostIds")
    locations: List[Position] = Field(default_factory=list)
    count: Optional[int] = None
    reinforce_all: bool = Field(default=False, alias="reinforceAll")

    @field_validator("outpost_ids", mode="before")
    @classmethod
    def listify_ids(cls, v):
        if v is None:
            return []
        if isinstance(v, (str, int)):
            return [str(v)]
        return [str(i) for i in v]

    @field_validator("locations", mode="before")
    @classmethod
    def parse_locations(cls, v):
        locations = normalize_locations(v)
        return [] if locations == "all" else locations

    @field_validator("count", mode="before")
    @classmethod
    def parse_count(cls, v):
        if v in (None, ""):
            return None
        count = int(str(v).strip().strip("'\""))
        return count if count >= 1 else None


class SellIntent(BaseModel):
    """Outposts to list on the market, and the asking price in $LORDS."""

    locations: Union[Literal["all"], List[Position]]
    price: Optional[int] = None

    @field_validator("locations", mode="before")
    @classmethod
    def parse_locations(cls, v):
        return normalize_locations(v)

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v):
        if v in (None, ""):
            return None
        amount = float(str(v).replace("$LORDS", "").strip())
        if not math.isfinite(amount):
            raise ValueError(f"Price is not a finite number: {v!r}")
        price = int(amount)
        return price if price > 0 else None

    @property
    def sell_all(self) -> bool:
        return self.locations == "all"


class RevokeIntent(BaseModel):
    """Market listings to withdraw, by outpost location."""

    locations: Union[Literal["all"], List[Position]]

    @field_validator("locations", mode="before")
    @classmethod
    def parse_locations(cls, v):
        return normalize_locations(v)

    @property
    def revoke_all(self) -> bool:
        return self.locations == "all"
