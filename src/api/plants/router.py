from fastapi import APIRouter, Query, status

from src.api.core.dependencies import (
    ConversationWorkflowDep,
    CurrentCallerDep,
    HealthAssessmentWorkflowDep,
    IdentificationWorkflowDep,
    UploaderDep,
)
from src.api.core.exceptions.base import PlantScanException
from src.api.core.messages import APIResponse, MessageCode
from src.api.plants.schemas import (
    ClassificationRequestBody,
    ConversationRequestBody,
    ConversationResponse,
    HealthAssessmentResponse,
    IdentificationResponse,
    SignedUrlResponse,
    SignedUrlResult,
)
from src.modules.plants.application.requests import ClassificationRequest
from src.modules.plants.application.use_cases import (
    DISEASE_DETECTIONS_FOLDER,
    IDENTIFICATIONS_FOLDER,
    require_caller,
)
from src.utils.path_helpers import key_belongs_to_owner
from src.utils.settings.app import AppSettings

router = APIRouter(prefix="/plants", tags=["plants"])

READABLE_FOLDERS = {IDENTIFICATIONS_FOLDER, DISEASE_DETECTIONS_FOLDER}


def _to_request(body: ClassificationRequestBody) -> ClassificationRequest:
    return ClassificationRequest.from_encoded(
        body.images,
        latitude=body.location.latitude if body.location else None,
        longitude=body.location.longitude if body.location else None,
        max_images=AppSettings().MAX_IMAGES_PER_REQUEST,
    )


@router.post("/identify", response_model=IdentificationResponse)
async def identify_plant(
    body: ClassificationRequestBody,
    caller: CurrentCallerDep,
    workflow: IdentificationWorkflowDep,
) -> IdentificationResponse:
    """Identify a plant species from one or more images."""
    result = await workflow.run(caller, _to_request(body))
    return APIResponse.success(message_code=MessageCode.PLANT_IDENTIFIED, data=result)


@router.post("/health-assessment", response_model=HealthAssessmentResponse)
async def assess_plant_health(
    body: ClassificationRequestBody,
    caller: CurrentCallerDep,
    workflow: HealthAssessmentWorkflowDep,
) -> HealthAssessmentResponse:
    """Detect diseases and other health issues from one or more images."""
    result = await workflow.run(caller, _to_request(body))
    return APIResponse.success(message_code=MessageCode.HEALTH_ASSESSED, data=result)


@router.post("/conversation", response_model=ConversationResponse)
async def ask_plant_question(
    body: ConversationRequestBody,
    caller: CurrentCallerDep,
    workflow: ConversationWorkflowDep,
) -> ConversationResponse:
    """Ask a follow-up question about an earlier identification."""
    result = await workflow.ask(
        caller,
        body.identification_id,
        body.question,
        prompt=body.prompt,
        temperature=body.temperature,
        app_name=body.app_name,
    )
    return APIResponse.success(message_code=MessageCode.QUESTION_ANSWERED, data=result)


@router.get("/images/signed-url", response_model=SignedUrlResponse)
async def get_image_url(
    caller: CurrentCallerDep,
    uploader: UploaderDep,
    key: str = Query(..., min_length=1),
) -> SignedUrlResponse:
    """Temporary read URL for one of the caller's stored images."""
    owner = await require_caller(caller)
    if not key_belongs_to_owner(key, owner.user_id, READABLE_FOLDERS):
        raise PlantScanException(MessageCode.FORBIDDEN, status.HTTP_403_FORBIDDEN)

    url = await uploader.generate_signed_url(key)
    if url is None:
        raise PlantScanException(
            MessageCode.SIGNED_URL_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return APIResponse.success(
        data=SignedUrlResult(
            key=key,
            url=url,
            expires_in=uploader.settings.SIGNED_URL_EXPIRY_SECONDS,
        )
    )
