"""
Game session lookups that go through the TTL cache.

Games last for days, so the active game id and the average block time
are fetched once and reused until their ttl runs out.
"""

import logging
from typing import Optional

from tools.ttl_cache import TTLCache

logger = logging.getLogger('GameSession')

ACTIVE_GAME_CACHE_KEY = "activeGameId"
AVERAGE_BLOCK_TIME_CACHE_KEY = "averageBlockTime"
ONE_DAY_SECONDS = 60 * 60 * 24


async def resolve_active_game_id(cache: TTLCache, torii, ttl: float = ONE_DAY_SECONDS) -> Optional[str]:
    """Cached active game id, fetched from Torii on a miss.

    Returns None when Torii reports no current game. Index failures
    propagate as StateUnavailableError.
    """
    game_id = cache.get(ACTIVE_GAME_CACHE_KEY)
    if game_id:
        return game_id

    game_id = await torii.get_active_game()
    if game_id:
        cache.set(ACTIVE_GAME_CACHE_KEY, game_id, ttl=ttl)
        logger.info(f"Active game {game_id} cached for {ttl}s")
    return game_id


async def resolve_average_block_time(cache: TTLCache, starknet, ttl: float = ONE_DAY_SECONDS) -> float:
    block_time = cache.get(AVERAGE_BLOCK_TIME_CACHE_KEY)
    if block_time:
        return float(block_time)

    block_time = await starknet.fetch_average_block_time()
    cache.set(AVERAGE_BLOCK_TIME_CACHE_KEY, block_time, ttl=ttl)
    return float(block_time)
