"""Plant API schemas (requests and results)."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse
from src.modules.plants.diagnosis import HealthIssue
from src.modules.plants.models import Suggestion


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ClassificationRequestBody(BaseModel):
    """Images are base64 data URLs (``data:image/jpeg;base64,...``)."""

    images: list[str] = Field(min_length=1)
    location: Location | None = None


class ConversationRequestBody(BaseModel):
    identification_id: str = Field(min_length=1)
    question: str = Field(min_length=1)
    prompt: str | None = None
    temperature: float | None = Field(default=None, ge=0, le=2)
    app_name: str | None = None


class SimilarImageOut(BaseModel):
    url: str | None = None
    url_small: str | None = None
    similarity: float | None = None
    license_name: str | None = None
    citation: str | None = None


class SuggestionOut(BaseModel):
    id: str | None = None
    scientific_name: str | None = None
    confidence: float
    common_names: list[str] = Field(default_factory=list)
    description: str | None = None
    similar_images: list[SimilarImageOut] = Field(default_factory=list)

    @classmethod
    def from_suggestion(cls, suggestion: Suggestion) -> "SuggestionOut":
        details = suggestion.details
        return cls(
            id=suggestion.id,
            scientific_name=suggestion.name,
            confidence=suggestion.score,
            common_names=(details.common_names or []) if details else [],
            description=(details.description_text or None) if details else None,
            similar_images=[
                SimilarImageOut(
                    url=image.url,
                    url_small=image.url_small,
                    similarity=image.similarity,
                    license_name=image.license_name,
                    citation=image.citation,
                )
                for image in suggestion.similar_images
            ],
        )


class IdentificationResult(BaseModel):
    plant_id: UUID | None = None
    access_token: str | None = None
    confidence: float
    is_plant: float | None = None
    status: str | None = None
    top_suggestion: SuggestionOut | None = None
    suggestions: list[SuggestionOut]
    saved_images: list[str]


class HealthAssessmentResult(BaseModel):
    access_token: str | None = None
    is_healthy: bool
    health_probability: float
    confidence: float
    is_plant: float | None = None
    status: str | None = None
    top_disease: SuggestionOut | None = None
    diseases: list[SuggestionOut]
    health_issues: list[HealthIssue]
    question: dict[str, Any] | None = None
    saved_images: list[str]


class ConversationEntry(BaseModel):
    type: str | None = None
    content: str | None = None
    created: str | None = None


class ConversationResult(BaseModel):
    identification_id: str
    question: str
    answer: str
    conversation_history: list[ConversationEntry]
    model: str | None = None
    temperature: float | None = None
    remaining_calls: int | None = None
    total_questions: int


class SignedUrlResult(BaseModel):
    key: str
    url: str
    expires_in: int


IdentificationResponse = APIResponse[IdentificationResult]
HealthAssessmentResponse = APIResponse[HealthAssessmentResult]
ConversationResponse = APIResponse[ConversationResult]
SignedUrlResponse = APIResponse[SignedUrlResult]
