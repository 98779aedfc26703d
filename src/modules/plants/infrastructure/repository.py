"""SQLAlchemy implementation of the plant persistence contract."""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.core.base import BaseService
from src.database.models.plants import Plant, PlantHistory

PLANT_COLUMNS = frozenset(
    column.key for column in Plant.__table__.columns
) - {"id", "user_id", "created_at", "updated_at"}


class PlantRepository(BaseService):
    """Stores plants keyed by (user, scientific name) and their history."""

    async def get_plant(self, owner_id: UUID, scientific_name: str) -> Plant | None:
        stmt = select(Plant).where(
            Plant.user_id == owner_id,
            Plant.scientific_name == scientific_name,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_plants(self, owner_id: UUID) -> list[Plant]:
        stmt = (
            select(Plant)
            .where(Plant.user_id == owner_id)
            .order_by(Plant.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def upsert_plant(self, owner_id: UUID, payload: dict[str, Any]) -> Plant:
        """Insert the plant, or merge ``payload`` into the existing row.

        A concurrent insert of the same (user, species) trips the unique
        constraint; in that case the winner's row is re-read and merged.
        """
        values = {k: v for k, v in payload.items() if k in PLANT_COLUMNS}
        scientific_name = values["scientific_name"]

        existing = await self.get_plant(owner_id, scientific_name)
        if existing is not None:
            return await self._merge(existing, values)

        plant = Plant(user_id=owner_id, **values)
        self.db.add(plant)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await self.get_plant(owner_id, scientific_name)
            if existing is None:
                raise
            self.logger.info(
                "Concurrent plant insert detected, merging",
                user_id=str(owner_id),
                scientific_name=scientific_name,
            )
            return await self._merge(existing, values)

        await self.db.refresh(plant)
        self.logger.info(
            "Plant created",
            plant_id=str(plant.id),
            user_id=str(owner_id),
            scientific_name=scientific_name,
        )
        return plant

    async def _merge(self, plant: Plant, values: dict[str, Any]) -> Plant:
        for key, value in values.items():
            setattr(plant, key, value)
        await self._commit()
        await self.db.refresh(plant)
        self.logger.info(
            "Plant updated",
            plant_id=str(plant.id),
            scientific_name=plant.scientific_name,
        )
        return plant

    async def append_history(
        self,
        owner_id: UUID,
        plant_id: UUID | None,
        action: str,
        metadata: dict[str, Any],
    ) -> None:
        self.db.add(
            PlantHistory(
                user_id=owner_id,
                plant_id=plant_id,
                action=action,
                metadata_=metadata,
            )
        )
        await self._commit()

    async def list_history(self, owner_id: UUID) -> list[PlantHistory]:
        stmt = (
            select(PlantHistory)
            .where(PlantHistory.user_id == owner_id)
            .order_by(PlantHistory.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
