"""Contracts the plant workflows rely on.

Authentication and persistence are supplied from outside the workflows; they
only ever see these protocols.
"""

from typing import Any, Protocol
from uuid import UUID

from src.core.context import AuthenticatedCaller


class PlantRecord(Protocol):
    id: UUID
    user_id: UUID
    scientific_name: str


class CallerValidator(Protocol):
    async def __call__(self, identity: AuthenticatedCaller | None) -> AuthenticatedCaller:
        """Return the validated owner or raise."""
        ...


class PlantStore(Protocol):
    async def upsert_plant(self, owner_id: UUID, payload: dict[str, Any]) -> PlantRecord:
        """Create the (owner, scientific name) plant or merge ``payload`` into it."""
        ...

    async def append_history(
        self,
        owner_id: UUID,
        plant_id: UUID | None,
        action: str,
        metadata: dict[str, Any],
    ) -> None: ...
