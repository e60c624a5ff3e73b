"""
ContractCall — the wire-stable payload handed to the wallet.

Shape on the wire (camelCase, what the web client consumes):
    {"id", "contractAddress", "calldata": [str], "entrypoint", "nextCalls"?: [...]}

`nextCalls` declares a strict ordering: children must not be submitted
until the parent transaction is confirmed on-chain.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContractCall(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    contract_address: str = Field(alias="contractAddress")
    calldata: List[str] = Field(default_factory=list)
    entrypoint: str
    next_calls: List["ContractCall"] = Field(default_factory=list, alias="nextCalls")

    @field_validator("calldata", mode="before")
    @classmethod
    def stringify_calldata(cls, v):
        return [str(item) for item in (v or [])]

    def to_wire(self) -> Dict[str, Any]:
        """Serialise for the chat client. Empty `nextCalls` is left out."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "contractAddress": self.contract_address,
            "calldata": list(self.calldata),
            "entrypoint": self.entrypoint,
        }
        if self.next_calls:
            payload["nextCalls"] = [child.to_wire() for child in self.next_calls]
        return payload

    @classmethod
    def from_wire(cls, payload: Dict[str, Any]) -> "ContractCall":
        return cls.model_validate(payload)


ContractCall.model_rebuild()


class ActionResponse(BaseModel):
    """What every action returns to the chat layer.

    `contract_calls` is None when no transaction is needed (informational
    replies and denials).
    """

    text: str
    action: str = "NONE"
    success: bool = True
    error: Optional[str] = None
    contract_calls: Optional[List[ContractCall]] = None

    def to_message(self, user: str = "Luna") -> Dict[str, Any]:
        message: Dict[str, Any] = {"user": user, "text": self.text, "action": self.action}
        if self.contract_calls:
            message["contractCalls"] = [call.to_wire() for call in self.contract_calls]
        if self.error:
            message["content"] = {"error": self.error}
        return message
