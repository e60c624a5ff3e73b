"""
Game state schemas — what Luna reads back from the Torii indexer.

Torii serialises small integers as JSON numbers but felts and block
numbers as hex strings, so numeric fields accept either.
"""

from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_felt_int(value: Union[int, str, None]) -> int:
    """Parse an indexer number that may arrive as int, decimal or 0x-hex string."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


class GamePhaseState(str, Enum):
    PREPARATION = "preparation"
    ACTIVE = "active"
    ENDED = "ended"


class Game(BaseModel):
    """The single active game of the deployment."""

    id: str


class GamePhase(BaseModel):
    """Phase derived from the current block and the two game thresholds."""

    state: GamePhaseState
    preparation_block: int = Field(ge=0)
    play_block: int = Field(ge=0)
    current_block: Optional[int] = None

    @property
    def blocks_until_play(self) -> int:
        if self.current_block is None:
            return 0
        return max(0, self.play_block - self.current_block)


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int

    @field_validator("x", "y", mode="before")
    @classmethod
    def parse_coordinate(cls, v):
        return parse_felt_int(v)

    def as_calldata(self) -> list:
        return [str(self.x), str(self.y)]

    def __str__(self) -> str:
        return f"{self.x},{self.y}"


class PlayerInfo(BaseModel):
    """One row per (player, game). Read-only from Luna's side."""

    player_id: str
    outpost_count: int = 0
    reinforcements_available: int = 0
    initialized: bool = False
    created_at: Optional[str] = None

    @field_validator("outpost_count", "reinforcements_available", mode="before")
    @classmethod
    def parse_counts(cls, v):
        return parse_felt_int(v)


class Outpost(BaseModel):
    """A player-owned outpost, addressed by position within a game."""

    id: str = ""
    position: Position
    status: str = ""
    life: int = 0
    reinforcement_slots_remaining: int = 0
    reinforcement_type: str = "None"
    owner: str = ""

    @field_validator("life", "reinforcement_slots_remaining", mode="before")
    @classmethod
    def parse_numbers(cls, v):
        return parse_felt_int(v)

    @property
    def is_unprotected(self) -> bool:
        return self.reinforcement_type in ("", "None")


# Listing statuses that can no longer be revoked
CLOSED_SALE_STATUSES = {"sold", "revoked"}


class OutpostSale(BaseModel):
    """A market listing for one outpost."""

    trade_id: str
    buyer: Optional[str] = None
    seller: str = ""
    status: str = ""
    trade_type: str = ""
    offer_position: Position

    @field_validator("trade_id", mode="before")
    @classmethod
    def stringify_trade_id(cls, v):
        return str(v)

    @property
    def is_open(self) -> bool:
        return self.status.lower() not in CLOSED_SALE_STATUSES
