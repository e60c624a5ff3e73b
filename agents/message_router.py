"""
MessageRouterAgent — picks which action (if any) a chat message triggers.

Obvious requests are matched by keyword heuristics without an API call.
Anything else is classified by the model. Messages that map to no action
get a direct in-character reply from Luna.
Uses the `system_instruction` parameter for stable identity.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from google import genai

from actions import ActionRegistry
from agents.intent_extractor import strip_code_fences
from models.persona import Persona
from tools.rate_limiter import gemini_limiter

logger = logging.getLogger('MessageRouter')

NO_ACTION = "NONE"

# Checked in order; the first rule whose every group has a hit wins.
# Each group is a tuple of alternatives.
HEURISTIC_RULES: List[Tuple[str, List[Tuple[str, ...]]]] = [
    ("REVOKE_OUTPOST_SALE", [("revoke", "cancel", "delist", "take down", "off the market"),
                             ("sale", "sell", "listing", "market", "outpost")]),
    ("SELL_OUTPOST", [("sell", "put up for sale"), ("outpost",)]),
    ("PURCHASE_REINFORCEMENT", [("buy", "purchase", "acquire", "get more"), ("reinforcement",)]),
    ("REINFORCE_OUTPOST", [("reinforce",)]),
    ("PURCHASE_OUTPOST", [("buy", "purchase", "acquire"), ("outpost",)]),
    ("GET_BALANCE", [("balance", "$lords", "how much lords"),]),
    ("GET_OUTPOSTS", [("my outposts", "my outpost", "outpost status", "show outposts", "list outposts"),]),
    ("GET_ACTIVE_GAME", [("active game", "current game", "game phase", "which phase", "what phase",
                          "when does the game start"),]),
]


def match_heuristics(message_content: str) -> Optional[str]:
    lower = message_content.lower()
    for action, groups in HEURISTIC_RULES:
        if all(any(kw in lower for kw in group) for group in groups):
            return action
    return None


class MessageRouterAgent:
    """Secretary agent that maps chat messages to actions."""

    def __init__(self, client, registry: ActionRegistry, persona: Persona,
                 model_id: str = "gemini-2.0-flash"):
        self.client = client
        self.registry = registry
        self.persona = persona
        self.model_id = model_id

    def _classifier_identity(self) -> str:
        catalog = "\n".join(
            f'- "{action.name}": {action.description} (also known as: {", ".join(action.similes)})'
            for action in self.registry
        )
        return f"""You are the action classifier for Luna, an advisor in the game Rising Revenant.
Your ONLY job is to decide which single action a player's message asks for.

Actions:
{catalog}
- "{NO_ACTION}": greetings, questions about the game or about Luna, or anything else that is
  not a request to perform one of the actions above.

You MUST respond with ONLY a JSON object:
{{"action": "<action name>", "reason": "<one-line explanation>"}}
"""

    async def classify_message(self, message_content: str) -> Dict[str, Any]:
        """Classify a message into an action name."""
        logger.info(f"Classifying message: {message_content}")

        action = match_heuristics(message_content)
        if action:
            result = {"action": action, "reason": "Keyword match"}
            logger.info(f"Heuristic classification: {result}")
            return result

        if not self.client:
            return {"action": NO_ACTION, "reason": "No model connected"}

        try:
            await gemini_limiter.acquire()
            response = await self.client.aio.models.generate_content(
                model=self.model_id,
                contents=f'Message to classify: "{message_content}"\n\nRespond with JSON only.',
                config=genai.types.GenerateContentConfig(
                    system_instruction=self._classifier_identity(),
                    temperature=0.0,
                    response_mime_type="application/json",
                ),
            )
            result = json.loads(strip_code_fences(response.text or ""))
            if not isinstance(result, dict):
                raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
            logger.info(f"LLM classification: {result}")
            return result
        except Exception as e:
            logger.error(f"Classification failed, defaulting to {NO_ACTION}: {e}")
            return {"action": NO_ACTION, "reason": f"Classification error: {e}"}

    async def route(self, message_content: str) -> str:
        """Classify, then resolve the answer against the registry. Unknown names become NONE."""
        classification = await self.classify_message(message_content)
        name = self.registry.resolve_name(classification.get("action"))
        if name is None:
            if classification.get("action") not in (None, NO_ACTION):
                logger.warning(f"Unknown action '{classification.get('action')}', replying directly")
            name = NO_ACTION
        logger.info(f"Routed message -> {name}")
        return name

    async def generate_direct_response(self, message_content: str) -> str:
        """In-character reply for messages that trigger no action."""
        logger.info(f"Generating direct response for: {message_content}")
        if not self.client:
            return "I'm having trouble connecting right now. Try again in a moment."

        try:
            await gemini_limiter.acquire()
            response = await self.client.aio.models.generate_content(
                model=self.model_id,
                contents=f"""Player's message: {message_content}

If the message is not about Rising Revenant or about you, politely decline and steer back to the game.
Otherwise answer concisely and helpfully. Stay in character.""",
                config=genai.types.GenerateContentConfig(
                    system_instruction=self.persona.system_prompt(),
                    temperature=0.7,
                ),
            )
            return (response.text or "").strip() or "The battlefield is quiet. What would you like to do?"
        except Exception as e:
            logger.error(f"Direct response generation failed: {e}")
            return "I'm having trouble thinking right now. Try again in a moment."
