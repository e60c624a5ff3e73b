"""
Pydantic v2 data models — the contract between the indexer, the LLM
and the wallet.

Nothing leaves an action unless it passed through these models first.
"""

from models.game import (
    Game,
    GamePhase,
    GamePhaseState,
    PlayerInfo,
    Position,
    Outpost,
    OutpostSale,
    parse_felt_int,
)
from models.intents import (
    TextResponse,
    PurchaseIntent,
    ReinforcementIntent,
    SellIntent,
    RevokeIntent,
)
from models.contract_call import ContractCall, ActionResponse
from models.persona import Persona

__all__ = [
    "Persona",
    "Game",
    "GamePhase",
    "GamePhaseState",
    "PlayerInfo",
    "Position",
    "Outpost",
    "OutpostSale",
    "parse_felt_int",
    "TextResponse",
    "PurchaseIntent",
    "ReinforcementIntent",
    "SellIntent",
    "RevokeIntent",
    "ContractCall",
    "ActionResponse",
]
