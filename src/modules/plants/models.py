"""Recognition provider payloads.

The provider's result graph is loosely specified, so every field is optional
and unknown keys are kept rather than rejected.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class SimilarImage(ProviderModel):
    id: str | None = None
    url: str | None = None
    url_small: str | None = None
    similarity: float | None = None
    license_name: str | None = None
    license_url: str | None = None
    citation: str | None = None


class SuggestionDetails(ProviderModel):
    language: str | None = None
    entity_id: str | None = None
    common_names: list[str] | None = None
    # {"value": ..., "citation": ...} for identifications, plain text for diseases
    description: dict[str, Any] | str | None = None
    description_gpt: str | None = None

    @field_validator("common_names", mode="before")
    @classmethod
    def _wrap_single_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @property
    def description_text(self) -> str:
        if isinstance(self.description, str) and self.description:
            return self.description
        if isinstance(self.description, dict) and self.description.get("value"):
            return str(self.description["value"])
        return self.description_gpt or ""


class Suggestion(ProviderModel):
    """One candidate classification. ``probability`` is the provider's score."""

    id: str | None = None
    name: str | None = None
    probability: float | None = None
    similar_images: list[SimilarImage] = Field(default_factory=list)
    details: SuggestionDetails | None = None

    @property
    def score(self) -> float:
        return self.probability if self.probability is not None else 0.0


class BinaryPrediction(ProviderModel):
    probability: float | None = None
    binary: bool | None = None
    threshold: float | None = None


class SuggestionList(ProviderModel):
    suggestions: list[Suggestion] = Field(default_factory=list)


class DiseaseBlock(SuggestionList):
    question: dict[str, Any] | None = None


class IdentificationResult(ProviderModel):
    is_plant: BinaryPrediction | None = None
    classification: SuggestionList | None = None


class HealthResult(ProviderModel):
    is_plant: BinaryPrediction | None = None
    is_healthy: BinaryPrediction | None = None
    disease: DiseaseBlock | None = None


class ProviderResponse(ProviderModel):
    access_token: str | None = None
    model_version: str | None = None
    custom_id: str | None = None
    status: str | None = None
    created: float | None = None
    completed: float | None = None


class IdentificationResponse(ProviderResponse):
    result: IdentificationResult | None = None

    @property
    def suggestions(self) -> list[Suggestion]:
        if self.result and self.result.classification:
            return self.result.classification.suggestions
        return []


class HealthAssessmentResponse(ProviderResponse):
    result: HealthResult | None = None

    @property
    def suggestions(self) -> list[Suggestion]:
        if self.result and self.result.disease:
            return self.result.disease.suggestions
        return []


class ConversationMessage(ProviderModel):
    type: str | None = None
    content: str | None = None
    created: str | None = None


class ModelParameters(ProviderModel):
    model: str | None = None
    temperature: float | None = None


class ConversationResponse(ProviderModel):
    identification: str | None = None
    messages: list[ConversationMessage] = Field(default_factory=list)
    model_parameters: ModelParameters | None = None
    remaining_calls: int | None = None
