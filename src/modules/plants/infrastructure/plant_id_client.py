"""Client for the remote plant recognition service."""

from typing import Any, TypeVar

from pydantic import BaseModel

from src.modules.plants.models import (
    ConversationResponse,
    HealthAssessmentResponse,
    IdentificationResponse,
)
from src.utils.http.client import ClientConfig, ResilientClient
from src.utils.http.errors import UnknownError
from src.utils.logger import get_logger
from src.utils.settings.plant_api import PlantApiSettings

logger = get_logger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


def build_plant_api_http_client(
    settings: PlantApiSettings | None = None, transport=None
) -> ResilientClient:
    """HTTP client preconfigured with the recognition service URL and key."""
    settings = settings or PlantApiSettings()
    config = ClientConfig(
        base_url=settings.PLANT_API_URL,
        timeout=settings.PLANT_API_TIMEOUT,
    ).with_api_key(
        settings.PLANT_API_KEY.get_secret_value(), settings.PLANT_API_KEY_HEADER
    )
    return ResilientClient(config, transport=transport)


class PlantIdClient:
    """Identification, health assessment and follow-up questions.

    Every call is retried on transient failures; anything that survives the
    retries is raised as an ``HttpClientError``.
    """

    def __init__(self, http: ResilientClient, settings: PlantApiSettings | None = None):
        self.http = http
        self.settings = settings or PlantApiSettings()

    async def identify(
        self,
        images: list[str],
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> IdentificationResponse:
        body = self._classification_body(images, latitude, longitude)
        return await self._post("identification", body, IdentificationResponse)

    async def assess_health(
        self,
        images: list[str],
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> HealthAssessmentResponse:
        body = self._classification_body(images, latitude, longitude)
        return await self._post("health_assessment", body, HealthAssessmentResponse)

    async def ask_question(
        self,
        identification_id: str,
        question: str,
        prompt: str | None = None,
        temperature: float | None = None,
        app_name: str | None = None,
    ) -> ConversationResponse:
        body: dict[str, Any] = {"question": question}
        if prompt:
            body["prompt"] = prompt
        if temperature is not None:
            body["temperature"] = temperature
        if app_name:
            body["app_name"] = app_name
        return await self._post(
            f"identification/{identification_id}/conversation",
            body,
            ConversationResponse,
        )

    @staticmethod
    def _classification_body(
        images: list[str], latitude: float | None, longitude: float | None
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"images": images, "similar_images": True}
        if latitude is not None:
            body["latitude"] = latitude
        if longitude is not None:
            body["longitude"] = longitude
        return body

    async def _post(
        self, path: str, body: dict[str, Any], model: type[ResponseModel]
    ) -> ResponseModel:
        response = await self.http.with_retry(
            lambda: self.http.post(path, body),
            self.settings.PLANT_API_MAX_RETRIES,
            self.settings.PLANT_API_RETRY_BASE_DELAY,
        )
        if not isinstance(response.data, dict):
            logger.error(
                "Unexpected recognition payload",
                path=path,
                payload_type=type(response.data).__name__,
            )
            raise UnknownError(
                f"POST {response.url} - Unexpected response payload",
                "POST",
                response.url,
            )
        return model.model_validate(response.data)
