"""
Chat Pipeline — Compiled LangGraph graph.

    router ──> action ──> END
       └─────> reply ───> END

Usage:
    pipeline = build_chat_pipeline(agents_dict)
    result = await pipeline.ainvoke({"text": ..., "wallet_address": ...})
"""

import logging
from functools import partial
from typing import Dict, Any

from langgraph.graph import StateGraph, END

from pipeline.state import ChatState
from pipeline.nodes.router_node import router_node
from pipeline.nodes.action_node import action_node
from pipeline.nodes.reply_node import reply_node

logger = logging.getLogger("pipeline.graph")


def _route_after_router(state: dict) -> str:
    """Conditional edge after the router node."""
    if state.get("action") in (None, "", "NONE"):
        return "reply"
    return "action"


def build_chat_pipeline(agents: Dict[str, Any]):
    """Build and compile the chat LangGraph pipeline.

    Args:
        agents: Dict with keys message_router, registry, context.

    Returns:
        A compiled LangGraph Pregel object (call .ainvoke(state)).
    """
    _router = partial(router_node, message_router=agents["message_router"])
    _action = partial(action_node, registry=agents["registry"], context=agents["context"])
    _reply = partial(reply_node, message_router=agents["message_router"])

    graph = StateGraph(ChatState)

    graph.add_node("router", _router)
    graph.add_node("action", _action)
    graph.add_node("reply", _reply)

    graph.set_entry_point("router")

    graph.add_conditional_edges(
        "router",
        _route_after_router,
        {
            "action": "action",
            "reply": "reply",
        },
    )

    graph.add_edge("action", END)
    graph.add_edge("reply", END)

    compiled = graph.compile()
    logger.info("Chat pipeline compiled successfully.")
    return compiled
