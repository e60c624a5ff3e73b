"""
LunaAgent — wires clients, actions, router and pipeline together.

One instance serves every request. The only state shared between
requests is the TTL cache.
"""

import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from actions import ActionContext, ActionRegistry
from actions.get_outposts import GetOutpostsAction
from agents.intent_extractor import IntentExtractor
from agents.message_router import MessageRouterAgent
from agents.tools.starknet_client import StarknetClient
from agents.tools.torii_client import ToriiClient
from models.contract_call import ActionResponse
from models.persona import Persona
from pipeline.graph import build_chat_pipeline
from tools.call_chain import (
    CALL_ID_PURCHASE_OUTPOST,
    CALL_ID_PURCHASE_REINFORCEMENT,
    CALL_ID_REINFORCE_OUTPOST,
    CallChainAssembler,
)
from tools.persona import load_persona
from tools.phase_gate import PhaseGate
from tools.settings import LunaSettings
from tools.transaction_runner import CallChainRunner, SubmitFn, TransitionFn
from tools.ttl_cache import TTLCache

logger = logging.getLogger('LunaAgent')

# Call ids whose confirmation changes what the outpost summary shows
OUTPOST_CHANGING_CALL_IDS = {
    CALL_ID_PURCHASE_OUTPOST,
    CALL_ID_PURCHASE_REINFORCEMENT,
    CALL_ID_REINFORCE_OUTPOST,
}

TRANSACTION_ACK_TEXT = "Your transaction went through. Let me know what you'd like to do next."
PIPELINE_FAILURE_TEXT = "Something went wrong while handling your message. Please try again."


class LunaAgent:
    """The Rising Revenant advisor, ready to answer chat messages."""

    def __init__(
        self,
        settings: LunaSettings,
        gemini_client=None,
        persona: Optional[Persona] = None,
        torii: Optional[ToriiClient] = None,
        starknet: Optional[StarknetClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.persona = persona or load_persona(settings.character_file)
        self.agent_id = str(uuid.uuid5(uuid.NAMESPACE_URL, f"rising-revenant/{self.persona.name.lower()}"))

        self.torii = torii or ToriiClient(settings.torii_url)
        self.starknet = starknet or StarknetClient(
            settings.provider_url,
            token_address=settings.token_address,
            outpost_address=settings.outpost_address,
            reinforcement_address=settings.reinforcement_address,
            market_address=settings.market_address,
            feeder_gateway_url=settings.feeder_gateway_url,
        )
        self.cache = TTLCache(clock=clock)
        self.registry = ActionRegistry()
        self.context = ActionContext(
            settings=settings,
            torii=self.torii,
            starknet=self.starknet,
            extractor=IntentExtractor(gemini_client, model_id=settings.model_id),
            cache=self.cache,
            gate=PhaseGate(self.torii, self.starknet),
            assembler=CallChainAssembler(settings.sequencing),
        )
        self.router = MessageRouterAgent(gemini_client, self.registry, self.persona, model_id=settings.model_id)
        self.pipeline = build_chat_pipeline({
            "message_router": self.router,
            "registry": self.registry,
            "context": self.context,
        })
        logger.info(f"{self.persona.name} ready as agent {self.agent_id} with {len(self.registry)} actions")

    async def start(self) -> None:
        await self.torii.connect()
        await self.starknet.connect()

    async def close(self) -> None:
        await self.torii.close()
        await self.starknet.close()

    def describe(self) -> Dict[str, Any]:
        return {"id": self.agent_id, "name": self.persona.name}

    async def handle_message(self, wallet_address: str, text: str) -> List[Dict[str, Any]]:
        """Run one chat message through the pipeline."""
        result = await self.pipeline.ainvoke({"text": text, "wallet_address": wallet_address})
        response = result.get("response")
        if response is None:
            logger.error(f"Pipeline produced no response: {result.get('error')}")
            response = ActionResponse(
                text=PIPELINE_FAILURE_TEXT,
                success=False,
                error=result.get("error") or "No response",
            )
        return [response.to_message(self.persona.name)]

    async def handle_transaction(self, wallet_address: str, call_ids: List[str]) -> List[Dict[str, Any]]:
        """Answer the client's report that a set of calls went through."""
        logger.info(f"Transaction report from {wallet_address}: {call_ids}")
        if OUTPOST_CHANGING_CALL_IDS.intersection(call_ids):
            response = await GetOutpostsAction(after_transaction=True).run(self.context, wallet_address, "")
        else:
            response = ActionResponse(text=TRANSACTION_ACK_TEXT)
        return [response.to_message(self.persona.name)]

    def call_runner(self, submit: SubmitFn, on_transition: Optional[TransitionFn] = None) -> CallChainRunner:
        """A runner that confirms transactions against this agent's Starknet node."""
        return CallChainRunner(submit, self.starknet.wait_for_transaction, on_transition=on_transition)
