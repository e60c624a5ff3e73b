"""
Luna HTTP API — aiohttp.web front end for the chat client.

Routes:
    GET  /agents                    -> {"agents": [{id, name}]}
    GET  /agents/{agent_id}         -> {"id", "character"}
    POST /{agent_id}/message        -> [message, ...]   (form or JSON: text, walletAddress)
    POST /{agent_id}/transaction    -> [message, ...]   (JSON: callIds, walletAddress)

To run: python -m server.app
"""

import os
import logging
from typing import Any, Dict

from aiohttp import web
from google import genai

from server.agent import LunaAgent
from tools.settings import LunaSettings

logger = logging.getLogger('LunaServer')

AGENT_KEY = web.AppKey("agent", LunaAgent)


def _agent_for(request: web.Request) -> LunaAgent:
    agent = request.app[AGENT_KEY]
    if request.match_info.get("agent_id") != agent.agent_id:
        raise web.HTTPNotFound(text=f"Agent {request.match_info.get('agent_id')} not found")
    return agent


async def _read_body(request: web.Request) -> Dict[str, Any]:
    if request.content_type == "application/json":
        try:
            data = await request.json()
        except ValueError:
            raise web.HTTPBadRequest(text="Invalid JSON body")
        if not isinstance(data, dict):
            raise web.HTTPBadRequest(text="Expected a JSON object")
        return data
    return dict(await request.post())


async def list_agents(request: web.Request) -> web.Response:
    return web.json_response({"agents": [request.app[AGENT_KEY].describe()]})


async def get_agent(request: web.Request) -> web.Response:
    agent = _agent_for(request)
    return web.json_response({"id": agent.agent_id, "character": agent.persona.model_dump()})


async def post_message(request: web.Request) -> web.Response:
    agent = _agent_for(request)
    body = await _read_body(request)

    wallet_address = (body.get("walletAddress") or "").strip()
    text = (body.get("text") or "").strip()
    if not wallet_address:
        raise web.HTTPBadRequest(text="walletAddress is required")
    if not text:
        raise web.HTTPBadRequest(text="text is required")

    messages = await agent.handle_message(wallet_address, text)
    return web.json_response(messages)


async def post_transaction(request: web.Request) -> web.Response:
    agent = _agent_for(request)
    body = await _read_body(request)

    wallet_address = (body.get("walletAddress") or "").strip()
    call_ids = body.get("callIds") or []
    if not wallet_address:
        raise web.HTTPBadRequest(text="walletAddress is required")
    if not isinstance(call_ids, list):
        raise web.HTTPBadRequest(text="callIds must be a list")

    messages = await agent.handle_transaction(wallet_address, [str(c) for c in call_ids])
    return web.json_response(messages)


def create_app(agent: LunaAgent) -> web.Application:
    app = web.Application()
    app[AGENT_KEY] = agent

    app.router.add_get("/agents", list_agents)
    app.router.add_get("/agents/{agent_id}", get_agent)
    app.router.add_post("/{agent_id}/message", post_message)
    app.router.add_post("/{agent_id}/transaction", post_transaction)

    async def on_startup(app: web.Application) -> None:
        await app[AGENT_KEY].start()

    async def on_cleanup(app: web.Application) -> None:
        await app[AGENT_KEY].close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


def setup_logging() -> None:
    if not os.path.exists("logs"):
        os.makedirs("logs")

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler("logs/luna.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )


def run():
    """Synchronous entry point for scripts."""
    setup_logging()
    settings = LunaSettings.from_env()

    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY not found in environment. Only keyword routing will work.")
        gemini_client = None
    else:
        gemini_client = genai.Client(api_key=settings.gemini_api_key)

    agent = LunaAgent(settings, gemini_client=gemini_client)
    logger.info(f"Starting Luna on {settings.host}:{settings.port}")
    web.run_app(create_app(agent), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
