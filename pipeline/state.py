"""
ChatState — The typed state that flows through every node in the LangGraph pipeline.

Each node reads from and writes to this state dict.
LangGraph automatically merges the returned partial state.
"""

from typing import TypedDict, Optional

from models.contract_call import ActionResponse


class ChatState(TypedDict, total=False):
    """State flowing through the Luna chat pipeline.

    Fields:
        text:            Raw chat message from the player.
        wallet_address:  The player's Starknet wallet.
        action:          Action picked by the router, or "NONE".
        response:        What gets sent back to the player.
        error:           If set, an error occurred at some node.
    """
    text: str
    wallet_address: str
    action: str
    response: Optional[ActionResponse]
    error: Optional[str]
