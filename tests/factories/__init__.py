"""Test factories for PlantScan API models and provider payloads."""

from .base import AsyncSQLAlchemyModelFactory
from .plants import (
    PlantFactory,
    PlantHistoryFactory,
    SimilarImagePayloadFactory,
    SuggestionPayloadFactory,
    conversation_payload,
    health_payload,
    identification_payload,
)

__all__ = [
    "AsyncSQLAlchemyModelFactory",
    "PlantFactory",
    "PlantHistoryFactory",
    "SimilarImagePayloadFactory",
    "SuggestionPayloadFactory",
    "conversation_payload",
    "health_payload",
    "identification_payload",
]
