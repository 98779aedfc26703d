from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.context import AuthenticatedCaller
from src.modules.plants.application.use_cases import (
    ConversationWorkflow,
    HealthAssessmentWorkflow,
    IdentificationWorkflow,
)
from src.modules.plants.infrastructure.plant_id_client import PlantIdClient
from src.modules.plants.infrastructure.repository import PlantRepository
from src.utils.object_storage import ChunkedUploader


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


def get_current_caller(request: Request) -> AuthenticatedCaller | None:
    """Caller resolved by the authentication layer, if any.

    Rejection of anonymous callers is left to the workflows so that it
    happens before any outbound call.
    """
    return getattr(request.state, "caller", None)


def get_plant_id_client(request: Request) -> PlantIdClient:
    """Get the recognition service client from app state."""
    return request.app.state.plant_id_client


def get_uploader(request: Request) -> ChunkedUploader:
    """Get the object storage uploader from app state."""
    return request.app.state.uploader


async def get_plant_repository(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> PlantRepository:
    """Get plant repository with database session."""
    return PlantRepository(db)


async def get_identification_workflow(
    plant_api: Annotated[PlantIdClient, Depends(get_plant_id_client)],
    uploader: Annotated[ChunkedUploader, Depends(get_uploader)],
    repository: Annotated[PlantRepository, Depends(get_plant_repository)],
) -> IdentificationWorkflow:
    return IdentificationWorkflow(plant_api, uploader, repository)


async def get_health_assessment_workflow(
    plant_api: Annotated[PlantIdClient, Depends(get_plant_id_client)],
    uploader: Annotated[ChunkedUploader, Depends(get_uploader)],
    repository: Annotated[PlantRepository, Depends(get_plant_repository)],
) -> HealthAssessmentWorkflow:
    return HealthAssessmentWorkflow(plant_api, uploader, repository)


async def get_conversation_workflow(
    plant_api: Annotated[PlantIdClient, Depends(get_plant_id_client)],
    repository: Annotated[PlantRepository, Depends(get_plant_repository)],
) -> ConversationWorkflow:
    return ConversationWorkflow(plant_api, repository)


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
CurrentCallerDep = Annotated[AuthenticatedCaller | None, Depends(get_current_caller)]
UploaderDep = Annotated[ChunkedUploader, Depends(get_uploader)]
IdentificationWorkflowDep = Annotated[
    IdentificationWorkflow, Depends(get_identification_workflow)
]
HealthAssessmentWorkflowDep = Annotated[
    HealthAssessmentWorkflow, Depends(get_health_assessment_workflow)
]
ConversationWorkflowDep = Annotated[
    ConversationWorkflow, Depends(get_conversation_workflow)
]
