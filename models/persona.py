"""
Persona schema — who Luna is when she talks outside of an action.
"""

from typing import List
from pydantic import BaseModel, Field


class ChatStyle(BaseModel):
    all: List[str] = []
    chat: List[str] = []


class Persona(BaseModel):
    """Loaded from characters/*.yaml."""

    name: str
    system: str
    bio: List[str] = []
    lore: List[str] = []
    knowledge: List[str] = []
    topics: List[str] = []
    style: ChatStyle = Field(default_factory=ChatStyle)
    adjectives: List[str] = []

    model_config = {"extra": "ignore"}

    def system_prompt(self) -> str:
        """Flatten the persona into a single system instruction."""
        sections = [self.system]
        if self.bio:
            sections.append("## About you\n" + "\n".join(f"- {line}" for line in self.bio))
        if self.lore:
            sections.append("## Lore\n" + "\n".join(f"- {line}" for line in self.lore))
        if self.knowledge:
            sections.append("## Knowledge\n" + "\n".join(f"- {line}" for line in self.knowledge))
        if self.topics:
            sections.append("## Topics you care about\n" + ", ".join(self.topics))
        style = self.style.all + self.style.chat
        if style:
            sections.append("## Style\n" + "\n".join(f"- {line}" for line in style))
        if self.adjectives:
            sections.append("You are " + ", ".join(self.adjectives) + ".")
        return "\n\n".join(sections)
