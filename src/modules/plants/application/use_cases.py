import asyncio
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import status

from src.api.core.exceptions.base import PlantScanException
from src.api.core.messages import MessageCode
from src.api.plants.schemas import (
    ConversationEntry,
    ConversationResult,
    HealthAssessmentResult,
    IdentificationResult,
    SuggestionOut,
)
from src.core.context import AuthenticatedCaller
from src.modules.plants.application.requests import ClassificationRequest
from src.modules.plants.diagnosis import categorize_health_issue
from src.modules.plants.images import ImagePayload, slugify
from src.modules.plants.infrastructure.plant_id_client import PlantIdClient
from src.modules.plants.models import (
    HealthAssessmentResponse,
    IdentificationResponse,
    ProviderResponse,
    Suggestion,
)
from src.modules.plants.ports import CallerValidator, PlantStore
from src.modules.plants.ranking import RankedResult, rank_disease, rank_species
from src.utils.http.errors import HttpClientError
from src.utils.logger import get_logger
from src.utils.object_storage import ChunkedUploader, StorageError
from src.utils.path_helpers import build_object_key

logger = get_logger(__name__)

IDENTIFICATIONS_FOLDER = "identifications"
DISEASE_DETECTIONS_FOLDER = "disease_detections"


async def require_caller(identity: AuthenticatedCaller | None) -> AuthenticatedCaller:
    """Default caller validation: the auth layer must have resolved a user."""
    if identity is None:
        raise PlantScanException(MessageCode.UNAUTHORIZED, status.HTTP_401_UNAUTHORIZED)
    return identity


def _timestamp(value: float | None) -> str | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


def _common_name(scientific_name: str) -> str:
    genus = scientific_name.split(" ")[0] if scientific_name else ""
    return genus[:1].upper() + genus[1:]


def _format_suggestion(suggestion: Suggestion) -> dict[str, Any]:
    return SuggestionOut.from_suggestion(suggestion).model_dump()


class ImagePersistenceError(StorageError):
    """At least one image of a request could not be stored."""


class PlantClassificationWorkflow:
    """Shared pipeline for identification and health assessment.

    Steps run strictly in order: caller validation, recognition call,
    ranking, image persistence, record upsert, history. Only the history
    step is best-effort; every other failure ends the request with a
    ``PlantScanException``.
    """

    action: str
    history_action: str
    storage_folder: str
    default_item_prefix: str
    failure_code: MessageCode

    def __init__(
        self,
        plant_api: PlantIdClient,
        uploader: ChunkedUploader,
        store: PlantStore,
        validate_caller: CallerValidator = require_caller,
    ):
        self.plant_api = plant_api
        self.uploader = uploader
        self.store = store
        self.validate_caller = validate_caller

    async def run(
        self, identity: AuthenticatedCaller | None, request: ClassificationRequest
    ):
        caller = await self.validate_caller(identity)
        if not request.images:
            raise PlantScanException(
                MessageCode.INVALID_INPUT,
                status.HTTP_400_BAD_REQUEST,
                details={"description": "At least one image is required"},
            )

        start_time = time.time()
        try:
            response = await self.classify(request)
            ranked = self.rank(response)
            saved_keys = await self.persist_images(
                caller, request.images, ranked.top_suggestion
            )
            plant_id = await self.save_record(caller, response, ranked, saved_keys)
            result = self.build_result(response, ranked, saved_keys, plant_id)
        except PlantScanException:
            raise
        except HttpClientError as e:
            logger.error(
                "Recognition service failed",
                action=self.action,
                user_id=str(caller.user_id),
                image_count=len(request.images),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PlantScanException(
                MessageCode.EXTERNAL_SERVICE_ERROR,
                status.HTTP_503_SERVICE_UNAVAILABLE,
                details={"description": "Plant recognition service temporarily unavailable"},
            )
        except StorageError as e:
            logger.error(
                "Image persistence failed",
                action=self.action,
                user_id=str(caller.user_id),
                image_count=len(request.images),
                error=str(e),
            )
            raise PlantScanException(
                MessageCode.IMAGE_STORAGE_FAILED,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                details={"description": "Failed to store submitted images"},
            )
        except Exception as e:
            logger.error(
                "Plant workflow failed",
                action=self.action,
                user_id=str(caller.user_id),
                image_count=len(request.images),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PlantScanException(
                self.failure_code,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                details={"description": f"{self.action} failed due to an internal error"},
            )

        await self.record_history(
            caller, plant_id, self.history_metadata(request, ranked, saved_keys)
        )
        logger.info(
            "Plant workflow completed",
            action=self.action,
            user_id=str(caller.user_id),
            plant_id=str(plant_id) if plant_id else None,
            processing_time_ms=int((time.time() - start_time) * 1000),
        )
        return result

    async def classify(self, request: ClassificationRequest) -> ProviderResponse:
        raise NotImplementedError

    def rank(self, response: ProviderResponse) -> RankedResult:
        raise NotImplementedError

    async def save_record(
        self,
        caller: AuthenticatedCaller,
        response: ProviderResponse,
        ranked: RankedResult,
        saved_keys: list[str],
    ):
        return None

    def build_result(
        self,
        response: ProviderResponse,
        ranked: RankedResult,
        saved_keys: list[str],
        plant_id,
    ):
        raise NotImplementedError

    def history_metadata(
        self,
        request: ClassificationRequest,
        ranked: RankedResult,
        saved_keys: list[str],
    ) -> dict[str, Any]:
        top = ranked.top_suggestion
        return {
            "image_count": len(request.images),
            "top_suggestion": top.name if top else None,
            "confidence": top.score if top else 0.0,
            "saved_images": saved_keys,
        }

    def item_name(
        self, image: ImagePayload, index: int, top_suggestion: Suggestion | None
    ) -> str:
        """Storage item name, stable for the same image and top suggestion."""
        prefix = (
            slugify(top_suggestion.name)
            if top_suggestion and top_suggestion.name
            else self.default_item_prefix
        )
        return f"{prefix}_{index}_{image.content_hash}{image.extension}"

    async def persist_images(
        self,
        caller: AuthenticatedCaller,
        images: list[ImagePayload],
        top_suggestion: Suggestion | None,
    ) -> list[str]:
        """Upload every image concurrently and return their storage keys.

        If any upload fails, the images that did make it are deleted before
        the failure is raised.
        """
        tasks = [
            self.uploader.build_task(
                image.data,
                build_object_key(
                    self.storage_folder,
                    caller.user_id,
                    self.item_name(image, index, top_suggestion),
                ),
                image.mime_type,
            )
            for index, image in enumerate(images)
        ]
        results = await asyncio.gather(
            *(self.uploader.upload_task(task) for task in tasks),
            return_exceptions=True,
        )

        saved_keys = [r for r in results if isinstance(r, str)]
        failures = [r for r in results if isinstance(r, BaseException)]
        if not failures:
            return saved_keys

        for failure in failures:
            if not isinstance(failure, Exception):
                raise failure

        logger.error(
            "Image upload failed, removing stored siblings",
            action=self.action,
            user_id=str(caller.user_id),
            failed=len(failures),
            stored=len(saved_keys),
        )
        await asyncio.gather(*(self.uploader.delete(key) for key in saved_keys))

        first = failures[0]
        if isinstance(first, StorageError):
            raise first
        raise ImagePersistenceError(f"Failed to store image: {first}") from first

    async def record_history(
        self,
        caller: AuthenticatedCaller,
        plant_id,
        metadata: dict[str, Any],
    ) -> None:
        try:
            await self.store.append_history(
                caller.user_id, plant_id, self.history_action, metadata
            )
        except Exception as e:
            logger.error(
                "Failed to append plant history",
                action=self.action,
                user_id=str(caller.user_id),
                plant_id=str(plant_id) if plant_id else None,
                error=str(e),
            )


class IdentificationWorkflow(PlantClassificationWorkflow):
    """Identify the species in a set of images and keep it in the user's collection."""

    action = "identification"
    history_action = "identified"
    storage_folder = IDENTIFICATIONS_FOLDER
    default_item_prefix = "plant_identification"
    failure_code = MessageCode.IDENTIFICATION_FAILED

    async def classify(self, request: ClassificationRequest) -> IdentificationResponse:
        return await self.plant_api.identify(
            request.encoded_images, request.latitude, request.longitude
        )

    def rank(self, response: IdentificationResponse) -> RankedResult:
        return rank_species(response.suggestions)

    def upsert_payload(
        self,
        response: IdentificationResponse,
        ranked: RankedResult,
        saved_keys: list[str],
    ) -> dict[str, Any]:
        top = ranked.top_suggestion
        scientific_name = top.name or "Unknown Plant"
        is_plant = response.result.is_plant if response.result else None

        payload: dict[str, Any] = {
            "name": scientific_name,
            "scientific_name": scientific_name,
            "common_names": [_common_name(scientific_name)],
            "probability": top.score,
            "language": top.details.language if top.details else None,
            "is_plant": is_plant.probability if is_plant else None,
            "status": "healthy",
            "similar_images": [
                image.model_dump(exclude_none=True) for image in top.similar_images
            ],
            "suggestions": [_format_suggestion(s) for s in ranked.suggestions],
            "images": saved_keys,
            "identification_meta": {
                "access_token": response.access_token,
                "model_version": response.model_version,
                "status": response.status,
                "custom_id": response.custom_id,
                "created": _timestamp(response.created),
                "completed": _timestamp(response.completed),
            },
        }
        if top.details and top.details.entity_id:
            payload["entity_id"] = top.details.entity_id
        return payload

    async def save_record(
        self,
        caller: AuthenticatedCaller,
        response: IdentificationResponse,
        ranked: RankedResult,
        saved_keys: list[str],
    ):
        if ranked.top_suggestion is None:
            return None
        record = await self.store.upsert_plant(
            caller.user_id, self.upsert_payload(response, ranked, saved_keys)
        )
        return record.id

    def build_result(
        self,
        response: IdentificationResponse,
        ranked: RankedResult,
        saved_keys: list[str],
        plant_id,
    ) -> IdentificationResult:
        top = ranked.top_suggestion
        is_plant = response.result.is_plant if response.result else None
        return IdentificationResult(
            plant_id=plant_id,
            access_token=response.access_token,
            confidence=top.score if top else 0.0,
            is_plant=is_plant.probability if is_plant else None,
            status=response.status,
            top_suggestion=SuggestionOut.from_suggestion(top) if top else None,
            suggestions=[SuggestionOut.from_suggestion(s) for s in ranked.suggestions],
            saved_images=saved_keys,
        )


class HealthAssessmentWorkflow(PlantClassificationWorkflow):
    """Detect diseases on a plant.

    Assessments are not tied to a collection record, so nothing is upserted
    and the history entry carries no plant id.
    """

    action = "health_assessment"
    history_action = "disease_detected"
    storage_folder = DISEASE_DETECTIONS_FOLDER
    default_item_prefix = "disease_detection"
    failure_code = MessageCode.HEALTH_ASSESSMENT_FAILED

    async def classify(self, request: ClassificationRequest) -> HealthAssessmentResponse:
        return await self.plant_api.assess_health(
            request.encoded_images, request.latitude, request.longitude
        )

    def rank(self, response: HealthAssessmentResponse) -> RankedResult:
        return rank_disease(response.suggestions)

    def build_result(
        self,
        response: HealthAssessmentResponse,
        ranked: RankedResult,
        saved_keys: list[str],
        plant_id,
    ) -> HealthAssessmentResult:
        result = response.result
        is_healthy = result.is_healthy if result else None
        is_plant = result.is_plant if result else None
        top = ranked.top_suggestion

        return HealthAssessmentResult(
            access_token=response.access_token,
            is_healthy=bool(is_healthy.binary) if is_healthy else False,
            health_probability=(
                is_healthy.probability
                if is_healthy and is_healthy.probability is not None
                else 0.0
            ),
            confidence=top.score if top else 0.0,
            is_plant=is_plant.probability if is_plant else None,
            status=response.status,
            top_disease=SuggestionOut.from_suggestion(top) if top else None,
            diseases=[SuggestionOut.from_suggestion(s) for s in ranked.suggestions],
            health_issues=[categorize_health_issue(s) for s in ranked.suggestions],
            question=result.disease.question if result and result.disease else None,
            saved_images=saved_keys,
        )

    def history_metadata(
        self,
        request: ClassificationRequest,
        ranked: RankedResult,
        saved_keys: list[str],
    ) -> dict[str, Any]:
        metadata = super().history_metadata(request, ranked, saved_keys)
        metadata["top_disease"] = metadata.pop("top_suggestion")
        metadata["disease_count"] = len(ranked.suggestions)
        return metadata


class ConversationWorkflow:
    """Follow-up questions about an earlier identification."""

    action = "conversation"

    def __init__(
        self,
        plant_api: PlantIdClient,
        store: PlantStore,
        validate_caller: CallerValidator = require_caller,
    ):
        self.plant_api = plant_api
        self.store = store
        self.validate_caller = validate_caller

    async def ask(
        self,
        identity: AuthenticatedCaller | None,
        identification_id: str,
        question: str,
        prompt: str | None = None,
        temperature: float | None = None,
        app_name: str | None = None,
    ) -> ConversationResult:
        caller = await self.validate_caller(identity)
        if not identification_id or not question or not question.strip():
            raise PlantScanException(
                MessageCode.INVALID_INPUT,
                status.HTTP_400_BAD_REQUEST,
                details={"description": "Identification id and question are required"},
            )

        try:
            response = await self.plant_api.ask_question(
                identification_id, question, prompt, temperature, app_name
            )
        except HttpClientError as e:
            logger.error(
                "Conversation request failed",
                user_id=str(caller.user_id),
                identification_id=identification_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PlantScanException(
                MessageCode.EXTERNAL_SERVICE_ERROR,
                status.HTTP_503_SERVICE_UNAVAILABLE,
                details={"description": "Plant recognition service temporarily unavailable"},
            )
        except Exception as e:
            logger.error(
                "Conversation failed",
                user_id=str(caller.user_id),
                identification_id=identification_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PlantScanException(
                MessageCode.CONVERSATION_FAILED,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        answers = [m for m in response.messages if m.type == "answer" and m.content]
        if not answers:
            raise PlantScanException(
                MessageCode.EXTERNAL_SERVICE_ERROR,
                status.HTTP_502_BAD_GATEWAY,
                details={"description": "No answer received from the recognition service"},
            )
        answer = answers[-1].content

        parameters = response.model_parameters
        result = ConversationResult(
            identification_id=identification_id,
            question=question,
            answer=answer,
            conversation_history=[
                ConversationEntry(type=m.type, content=m.content, created=m.created)
                for m in response.messages
            ],
            model=parameters.model if parameters else None,
            temperature=parameters.temperature if parameters else None,
            remaining_calls=response.remaining_calls,
            total_questions=sum(1 for m in response.messages if m.type == "question"),
        )

        try:
            await self.store.append_history(
                caller.user_id,
                None,
                self.action,
                {
                    "identification_id": identification_id,
                    "question": question,
                    "answer": answer,
                    "remaining_calls": response.remaining_calls,
                },
            )
        except Exception as e:
            logger.error(
                "Failed to append plant history",
                action=self.action,
                user_id=str(caller.user_id),
                error=str(e),
            )

        return result
