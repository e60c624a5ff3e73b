"""
Reply Node — In-character answer for messages that trigger no action.
"""

import logging
from models.contract_call import ActionResponse
from pipeline.state import ChatState

logger = logging.getLogger("pipeline.reply")


async def reply_node(state: ChatState, *, message_router, **_kwargs) -> dict:
    text = await message_router.generate_direct_response(state["text"])
    logger.info(f"Direct reply (len={len(text)})")
    return {"response": ActionResponse(text=text, action="NONE")}
