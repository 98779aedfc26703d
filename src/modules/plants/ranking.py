"""Top-suggestion selection.

Species and disease results are ranked differently: species picks the
suggestion closest to certainty (``|p - 1|``), diseases pick the highest
probability. Both keep the first suggestion on ties and return ``None`` for
an empty list.
"""

from dataclasses import dataclass, field

from src.modules.plants.models import Suggestion


@dataclass
class RankedResult:
    suggestions: list[Suggestion] = field(default_factory=list)
    top_suggestion: Suggestion | None = None


def rank_species(suggestions: list[Suggestion]) -> RankedResult:
    top: Suggestion | None = None
    for candidate in suggestions:
        if top is None or abs(candidate.score - 1) < abs(top.score - 1):
            top = candidate
    return RankedResult(suggestions=list(suggestions), top_suggestion=top)


def rank_disease(suggestions: list[Suggestion]) -> RankedResult:
    top: Suggestion | None = None
    for candidate in suggestions:
        if top is None or candidate.score > top.score:
            top = candidate
    return RankedResult(suggestions=list(suggestions), top_suggestion=top)
