"""
Torii Client — read-only GraphQL queries against the game's indexer.

Torii mirrors the Rising Revenant world state (games, phases, players,
outposts, market listings) and serves it over GraphQL. Everything here
is eventually consistent with the chain and strictly read-only.

Requires:
  - TORII_URL: GraphQL endpoint of the Torii instance

All public methods are async. Callers must `await` every call.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from agents.tools.json_http import JsonPostClient
from agents.tools.luna_errors import IndexQueryError
from models.game import Outpost, OutpostSale, PlayerInfo, Position, parse_felt_int
from tools.rate_limiter import torii_limiter

logger = logging.getLogger('ToriiClient')


ACTIVE_GAME_QUERY = """
query GetActiveGame {
    currentGameModels(first: 1) {
        edges { node { game_id } }
    }
}
"""

GAME_PHASE_QUERY = """
query GetGamePhase($gameId: String!) {
    gamePhasesModels(where: { game_id: $gameId }) {
        edges {
            node {
                play_block_number
                preparation_block_number
                status
                game_id
            }
        }
    }
}
"""

PLAYER_INFO_QUERY = """
query GetPlayerInfo($walletAddress: String!, $gameId: String!) {
    playerInfoModels(where: { player_id: $walletAddress, game_id: $gameId }) {
        edges {
            node {
                player_id
                outpost_count
                reinforcements_available_count
                init
                entity { createdAt }
            }
        }
    }
}
"""

PLAYER_OUTPOSTS_QUERY = """
query GetPlayerOutposts($walletAddress: String!, $gameId: String!) {
    outpostModels(where: { owner: $walletAddress, game_id: $gameId }) {
        edges {
            node {
                game_id
                position { x y }
                status
                life
                reinforces_remaining
                reinforcement_type
                owner
                entity { id createdAt }
            }
        }
    }
}
"""

OUTPOST_BY_ID_QUERY = """
query GetOutpostById($entityId: String!) {
    entity(id: $entityId) {
        id
        models {
            ... on Outpost {
                position { x y }
            }
        }
    }
}
"""

PLAYER_SALES_QUERY = """
query GetPlayerOutpostSales($walletAddress: String!, $gameId: String!) {
    outpostTradeModels(where: { seller: $walletAddress, game_id: $gameId }) {
        edges {
            node {
                game_id
                buyer
                seller
                status
                trade_id
                trade_type
                offer { x y }
                entity { createdAt }
            }
        }
    }
}
"""


def _edges(data: Dict[str, Any], model: str) -> List[Dict[str, Any]]:
    """Pull the node dicts out of a Torii `<model>Models.edges` connection."""
    connection = (data or {}).get(model) or {}
    return [edge["node"] for edge in connection.get("edges") or [] if edge and edge.get("node")]


class ToriiClient(JsonPostClient):
    """Async client for the Torii GraphQL indexer.

    Usage:
        torii = ToriiClient(url)
        game_id = await torii.get_active_game()
        outposts = await torii.get_player_outposts(wallet, game_id)
        await torii.close()
    """

    error_class = IndexQueryError

    def __init__(self, url: str):
        super().__init__(url, limiter=torii_limiter, name="Torii")

    async def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a GraphQL query and return its `data` payload."""
        payload = await self._post({"query": query, "variables": variables or {}})
        if not isinstance(payload, dict):
            raise IndexQueryError(f"Unexpected Torii response: {payload!r}")
        if payload.get("errors"):
            messages = "; ".join(str(e.get("message", e)) for e in payload["errors"])
            raise IndexQueryError(f"Torii query failed: {messages}")
        return payload.get("data") or {}

    # ------------------------------------------------------------------
    # Game
    # ------------------------------------------------------------------

    async def get_active_game(self) -> Optional[str]:
        data = await self.query(ACTIVE_GAME_QUERY)
        nodes = _edges(data, "currentGameModels")
        if not nodes:
            logger.info("Torii reports no current game")
            return None
        return str(nodes[0]["game_id"])

    async def get_phase_thresholds(self, game_id: str) -> Tuple[int, int]:
        """Return (preparation_block, play_block) for a game."""
        data = await self.query(GAME_PHASE_QUERY, {"gameId": game_id})
        nodes = _edges(data, "gamePhasesModels")
        if not nodes:
            raise IndexQueryError(f"No phase data for game {game_id}")
        node = nodes[0]
        try:
            return (
                parse_felt_int(node["preparation_block_number"]),
                parse_felt_int(node["play_block_number"]),
            )
        except (KeyError, ValueError) as e:
            raise IndexQueryError(f"Malformed phase data for game {game_id}: {e}") from e

    # ------------------------------------------------------------------
    # Player
    # ------------------------------------------------------------------

    async def get_player_info(self, wallet_address: str, game_id: str) -> Optional[PlayerInfo]:
        data = await self.query(PLAYER_INFO_QUERY, {"walletAddress": wallet_address, "gameId": game_id})
        nodes = _edges(data, "playerInfoModels")
        if not nodes:
            return None
        node = nodes[0]
        return PlayerInfo(
            player_id=str(node.get("player_id", wallet_address)),
            outpost_count=node.get("outpost_count", 0),
            reinforcements_available=node.get("reinforcements_available_count", 0),
            initialized=bool(node.get("init", False)),
            created_at=(node.get("entity") or {}).get("createdAt"),
        )

    async def get_player_outposts(self, wallet_address: str, game_id: str) -> List[Outpost]:
        data = await self.query(PLAYER_OUTPOSTS_QUERY, {"walletAddress": wallet_address, "gameId": game_id})
        outposts = []
        for node in _edges(data, "outpostModels"):
            try:
                outposts.append(Outpost(
                    id=str((node.get("entity") or {}).get("id", "")),
                    position=Position(**node["position"]),
                    status=str(node.get("status", "")),
                    life=node.get("life", 0),
                    reinforcement_slots_remaining=node.get("reinforces_remaining", 0),
                    reinforcement_type=str(node.get("reinforcement_type") or "None"),
                    owner=str(node.get("owner", "")),
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed outpost node {node}: {e}")
        return outposts

    async def get_outpost_location_by_id(self, entity_id: str) -> Optional[Position]:
        """Resolve an outpost entity id to its position, or None if unknown."""
        data = await self.query(OUTPOST_BY_ID_QUERY, {"entityId": entity_id})
        entity = data.get("entity")
        if not entity:
            return None
        for model in entity.get("models") or []:
            position = (model or {}).get("position")
            if position:
                return Position(**position)
        return None

    async def get_player_outpost_sales(self, wallet_address: str, game_id: str) -> List[OutpostSale]:
        data = await self.query(PLAYER_SALES_QUERY, {"walletAddress": wallet_address, "gameId": game_id})
        sales = []
        for node in _edges(data, "outpostTradeModels"):
            try:
                sales.append(OutpostSale(
                    trade_id=node["trade_id"],
                    buyer=node.get("buyer"),
                    seller=str(node.get("seller", "")),
                    status=str(node.get("status", "")),
                    trade_type=str(node.get("trade_type", "")),
                    offer_position=Position(**node["offer"]),
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed trade node {node}: {e}")
        return sales
