"""Factories for plant rows and recognition provider payloads."""

from uuid import uuid4

import factory

from src.database.models import Plant, PlantHistory

from .base import AsyncSQLAlchemyModelFactory


class PlantFactory(AsyncSQLAlchemyModelFactory[Plant]):
    class Meta:
        model = Plant

    id = factory.LazyFunction(uuid4)
    user_id = factory.LazyFunction(uuid4)
    scientific_name = factory.Sequence(lambda n: f"Monstera species{n}")
    name = factory.SelfAttribute("scientific_name")
    common_names = factory.LazyAttribute(lambda o: [o.scientific_name.split(" ")[0]])
    probability = 0.9
    status = "healthy"
    images = factory.LazyFunction(list)


class PlantHistoryFactory(AsyncSQLAlchemyModelFactory[PlantHistory]):
    class Meta:
        model = PlantHistory

    id = factory.LazyFunction(uuid4)
    user_id = factory.LazyFunction(uuid4)
    plant_id = None
    action = "identified"
    metadata_ = factory.LazyFunction(dict)


class SimilarImagePayloadFactory(factory.DictFactory):
    id = factory.Sequence(lambda n: f"img-{n}")
    url = factory.LazyAttribute(lambda o: f"https://images.test/{o.id}.jpg")
    url_small = factory.LazyAttribute(lambda o: f"https://images.test/{o.id}_small.jpg")
    similarity = 0.8
    license_name = "CC BY 4.0"
    citation = "Plant archive"


class SuggestionPayloadFactory(factory.DictFactory):
    id = factory.Sequence(lambda n: f"suggestion-{n}")
    name = "Monstera deliciosa"
    probability = 0.5
    similar_images = factory.LazyFunction(lambda: [SimilarImagePayloadFactory()])
    details = factory.LazyAttribute(
        lambda o: {
            "language": "en",
            "entity_id": f"entity-{o.id}",
            "common_names": ["Swiss cheese plant"],
            "description": {"value": f"{o.name} description."},
        }
    )


def identification_payload(suggestions: list[dict], is_plant: float = 0.98) -> dict:
    return {
        "access_token": "ident-token",
        "model_version": "plant_id:3.6",
        "custom_id": None,
        "status": "COMPLETED",
        "created": 1700000000.0,
        "completed": 1700000001.5,
        "result": {
            "is_plant": {"probability": is_plant, "binary": True, "threshold": 0.5},
            "classification": {"suggestions": suggestions},
        },
    }


def health_payload(
    suggestions: list[dict],
    is_healthy: bool = False,
    health_probability: float = 0.2,
    question: dict | None = None,
) -> dict:
    return {
        "access_token": "health-token",
        "model_version": "plant_id:3.6",
        "status": "COMPLETED",
        "created": 1700000000.0,
        "completed": 1700000002.0,
        "result": {
            "is_plant": {"probability": 0.97, "binary": True, "threshold": 0.5},
            "is_healthy": {
                "probability": health_probability,
                "binary": is_healthy,
                "threshold": 0.525,
            },
            "disease": {"suggestions": suggestions, "question": question},
        },
    }


def conversation_payload(answer: str | None = "Water it weekly.") -> dict:
    messages = [
        {"type": "question", "content": "How often should I water it?", "created": "2024-05-01T10:00:00"},
    ]
    if answer is not None:
        messages.append({"type": "answer", "content": answer, "created": "2024-05-01T10:00:03"})
    return {
        "identification": "ident-token",
        "messages": messages,
        "model_parameters": {"model": "gpt-4o", "temperature": 0.5},
        "remaining_calls": 14,
    }
