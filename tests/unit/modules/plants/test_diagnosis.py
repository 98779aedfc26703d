"""Tests for health issue categorisation."""

import pytest

from src.modules.plants.diagnosis import (
    DEFAULT_CAUSES,
    DEFAULT_SYMPTOMS,
    IssueType,
    Severity,
    calculate_severity,
    categorize_health_issue,
    determine_issue_type,
    extract_causes,
    extract_symptoms,
)
from src.modules.plants.models import Suggestion


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Fungi", IssueType.DISEASE),
        ("bacterial leaf spot", IssueType.DISEASE),
        ("Insecta", IssueType.PEST),
        ("Animalia", IssueType.PEST),
        ("water excess or uneven watering", IssueType.ENVIRONMENTAL),
        ("nutrient deficiency", IssueType.NUTRIENT),
        ("something unusual", IssueType.ENVIRONMENTAL),
    ],
)
def test_determine_issue_type(name, expected):
    assert determine_issue_type(name) is expected


@pytest.mark.parametrize(
    ("probability", "expected"),
    [
        (0.95, Severity.HIGH),
        (0.7, Severity.HIGH),
        (0.69, Severity.MEDIUM),
        (0.4, Severity.MEDIUM),
        (0.39, Severity.LOW),
        (0.0, Severity.LOW),
    ],
)
def test_calculate_severity(probability, expected):
    assert calculate_severity(probability) is expected


def test_symptoms_from_description():
    symptoms = extract_symptoms("Leaves turn yellow and wilt before brown spots appear")
    assert symptoms == [
        "Yellowing leaves",
        "Browning or discoloration",
        "Wilting",
        "Leaf spots",
    ]


def test_symptoms_default():
    assert extract_symptoms("") == DEFAULT_SYMPTOMS


def test_causes_from_description():
    causes = extract_causes("Caused by fungi after overwatering")
    assert causes == [
        "Excessive watering or poor drainage",
        "Fungal infection due to moisture and humidity",
    ]


def test_causes_default():
    assert extract_causes("nothing to see") == DEFAULT_CAUSES


def test_categorize_disease_suggestion():
    suggestion = Suggestion.model_validate(
        {
            "id": "d1",
            "name": "Fungi",
            "probability": 0.82,
            "similar_images": [{"url": "https://images.test/1.jpg"}, {"url": None}],
            "details": {"description": {"value": "Brown spots caused by fungi."}},
        }
    )

    issue = categorize_health_issue(suggestion)

    assert issue.name == "Fungi"
    assert issue.type is IssueType.DISEASE
    assert issue.severity is Severity.HIGH
    assert issue.probability == 0.82
    assert issue.description == "Brown spots caused by fungi."
    assert "Leaf spots" in issue.symptoms
    assert issue.causes == ["Fungal infection due to moisture and humidity"]
    assert issue.treatment.immediate[0] == "Remove and dispose of infected plant parts"
    assert issue.similar_images == ["https://images.test/1.jpg"]


def test_categorize_water_excess_overrides_first_step():
    suggestion = Suggestion(name="water excess or uneven watering", probability=0.3)

    issue = categorize_health_issue(suggestion)

    assert issue.type is IssueType.ENVIRONMENTAL
    assert issue.severity is Severity.LOW
    assert issue.description == "No description available"
    assert issue.treatment.immediate[0] == "Stop watering and improve drainage"


def test_treatment_plans_are_not_shared():
    first = categorize_health_issue(Suggestion(name="water excess", probability=0.5))
    second = categorize_health_issue(Suggestion(name="light deficiency", probability=0.5))

    assert first.treatment.immediate[0] == "Stop watering and improve drainage"
    assert second.treatment.immediate[0] == "Adjust watering schedule"
