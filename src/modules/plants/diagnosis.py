"""Turns raw disease suggestions into structured health issues."""

from enum import Enum

from pydantic import BaseModel

from src.modules.plants.models import Suggestion


class IssueType(str, Enum):
    DISEASE = "disease"
    PEST = "pest"
    ENVIRONMENTAL = "environmental"
    NUTRIENT = "nutrient"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TreatmentPlan(BaseModel):
    immediate: list[str]
    long_term: list[str]
    prevention: list[str]


class HealthIssue(BaseModel):
    name: str
    type: IssueType
    probability: float
    severity: Severity
    description: str
    symptoms: list[str]
    causes: list[str]
    treatment: TreatmentPlan
    similar_images: list[str]


# (keywords, issue type), checked in order
ISSUE_TYPE_KEYWORDS: list[tuple[tuple[str, ...], IssueType]] = [
    (("fungi", "bacterial", "viral"), IssueType.DISEASE),
    (("insect", "pest", "animalia"), IssueType.PEST),
    (("water", "light", "temperature"), IssueType.ENVIRONMENTAL),
    (("nutrient", "deficiency"), IssueType.NUTRIENT),
]

SYMPTOM_KEYWORDS: list[tuple[str, str]] = [
    ("yellow", "Yellowing leaves"),
    ("brown", "Browning or discoloration"),
    ("wilt", "Wilting"),
    ("spot", "Leaf spots"),
    ("rot", "Root or stem rot"),
    ("stunted", "Stunted growth"),
    ("burn", "Leaf burn or scorching"),
]

CAUSE_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("overwater", "excess water"), "Excessive watering or poor drainage"),
    (("underwater", "drought"), "Insufficient watering"),
    (("fungal", "fungi"), "Fungal infection due to moisture and humidity"),
    (("insect", "pest"), "Pest infestation"),
    (("nutrient",), "Nutrient deficiency in soil"),
]

DEFAULT_SYMPTOMS = ["General plant stress visible"]
DEFAULT_CAUSES = ["Environmental stress factors"]

TREATMENTS: dict[IssueType, TreatmentPlan] = {
    IssueType.DISEASE: TreatmentPlan(
        immediate=[
            "Remove and dispose of infected plant parts",
            "Isolate affected plant to prevent spread",
            "Apply appropriate fungicide or bactericide",
        ],
        long_term=[
            "Improve air circulation around plants",
            "Adjust watering schedule to avoid moisture buildup",
            "Monitor regularly for recurrence",
        ],
        prevention=[
            "Maintain proper spacing between plants",
            "Water at soil level, not on foliage",
            "Use disease-resistant plant varieties",
        ],
    ),
    IssueType.PEST: TreatmentPlan(
        immediate=[
            "Manually remove visible pests",
            "Apply organic insecticidal soap",
            "Use neem oil spray treatment",
        ],
        long_term=[
            "Introduce beneficial insects",
            "Regular monitoring and early intervention",
            "Maintain plant health to improve resistance",
        ],
        prevention=[
            "Keep garden area clean and debris-free",
            "Use companion planting strategies",
            "Install physical barriers if needed",
        ],
    ),
    IssueType.ENVIRONMENTAL: TreatmentPlan(
        immediate=[
            "Adjust watering schedule",
            "Move plant to appropriate light conditions",
            "Check and adjust soil moisture levels",
        ],
        long_term=[
            "Establish consistent care routine",
            "Monitor environmental conditions regularly",
            "Adjust care based on seasonal changes",
        ],
        prevention=[
            "Use moisture meter for accurate watering",
            "Ensure proper drainage in containers",
            "Provide appropriate light exposure",
        ],
    ),
    IssueType.NUTRIENT: TreatmentPlan(
        immediate=[
            "Apply balanced fertilizer",
            "Test soil pH and adjust if needed",
            "Supplement with specific nutrients",
        ],
        long_term=[
            "Implement regular fertilization schedule",
            "Add organic matter to soil",
            "Monitor plant growth response",
        ],
        prevention=[
            "Use quality potting mix or soil",
            "Follow recommended feeding schedule",
            "Conduct annual soil tests",
        ],
    ),
}


def determine_issue_type(name: str) -> IssueType:
    lower = name.lower()
    for keywords, issue_type in ISSUE_TYPE_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return issue_type
    return IssueType.ENVIRONMENTAL


def calculate_severity(probability: float) -> Severity:
    if probability >= 0.7:
        return Severity.HIGH
    if probability >= 0.4:
        return Severity.MEDIUM
    return Severity.LOW


def extract_symptoms(description: str) -> list[str]:
    lower = description.lower()
    symptoms = [label for keyword, label in SYMPTOM_KEYWORDS if keyword in lower]
    return symptoms or list(DEFAULT_SYMPTOMS)


def extract_causes(description: str) -> list[str]:
    lower = description.lower()
    causes = [
        label
        for keywords, label in CAUSE_KEYWORDS
        if any(keyword in lower for keyword in keywords)
    ]
    return causes or list(DEFAULT_CAUSES)


def build_treatment(suggestion: Suggestion, issue_type: IssueType) -> TreatmentPlan:
    plan = TREATMENTS[issue_type].model_copy(deep=True)
    if issue_type is IssueType.ENVIRONMENTAL:
        common_names = suggestion.details.common_names if suggestion.details else None
        common = (common_names[0] if common_names else None) or suggestion.name or ""
        if "water excess" in common:
            plan.immediate[0] = "Stop watering and improve drainage"
    return plan


def categorize_health_issue(suggestion: Suggestion) -> HealthIssue:
    """Structured view of a single disease suggestion."""
    name = suggestion.name or "Unknown issue"
    issue_type = determine_issue_type(name)
    description = suggestion.details.description_text if suggestion.details else ""

    return HealthIssue(
        name=name,
        type=issue_type,
        probability=suggestion.score,
        severity=calculate_severity(suggestion.score),
        description=description or "No description available",
        symptoms=extract_symptoms(description),
        causes=extract_causes(description),
        treatment=build_treatment(suggestion, issue_type),
        similar_images=[img.url for img in suggestion.similar_images if img.url],
    )
