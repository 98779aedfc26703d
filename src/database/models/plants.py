"""Plant and plant history models."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Float, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType


class Plant(Base):
    """A user's plant, created by its first identification and merged after."""

    __tablename__ = "plants"
    __table_args__ = (
        UniqueConstraint("user_id", "scientific_name", name="uq_plants_user_species"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    scientific_name: Mapped[str] = mapped_column(String, nullable=False)
    common_names: Mapped[list[str]] = mapped_column(JSONType, default=list)
    entity_id: Mapped[str | None] = mapped_column(String, nullable=True)
    probability: Mapped[float] = mapped_column(Float, default=0.0)
    language: Mapped[str | None] = mapped_column(String, nullable=True)
    is_plant: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String, default="healthy")
    similar_images: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    suggestions: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    images: Mapped[list[str]] = mapped_column(JSONType, default=list)
    identification_meta: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class PlantHistory(Base):
    """Append-only log of plant interactions. Rows are never updated."""

    __tablename__ = "plant_histories"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    plant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("plants.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String, nullable=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
