"""
Persona loader — reads Luna's character sheet from YAML.
"""

import logging

import yaml
from pydantic import ValidationError

from models.persona import Persona

logger = logging.getLogger('Persona')

DEFAULT_PERSONA = Persona(
    name="Luna",
    system=(
        "You're Luna, AI advisor designed to guide and advise players when playing Rising Revenant. "
        "You shall not answer any question that is not related to the game or to yourself."
    ),
)


def load_persona(path: str) -> Persona:
    """Load a persona file. Falls back to the built-in Luna if it is missing or invalid."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Persona file not found: {path}, using default persona")
        return DEFAULT_PERSONA
    except yaml.YAMLError as e:
        logger.error(f"YAML parse error in {path}: {e}")
        return DEFAULT_PERSONA

    try:
        persona = Persona.model_validate(data)
    except ValidationError as e:
        logger.error(f"Invalid persona in {path}: {e}")
        return DEFAULT_PERSONA

    logger.info(f"Loaded persona '{persona.name}' from {path}")
    return persona
