"""
Grade derivation for completed (or partial) checklists.

Scoring policy:
    yes     -> 1
    no      -> 0
    unknown -> 0.5 (also used for unanswered questions)

The unknown score stays in the denominator. Whether unknowns should be
excluded instead is a product decision that has not been made.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from ecocafe.model import Catalog


@dataclass(frozen=True)
class Grade:
    """Derived grade. Never stored as engine state."""

    name: str
    icon: str
    stars: int
    message: str
    percent: float

    @property
    def star_string(self) -> str:
        return "★" * self.stars


# (minimum percent, name, icon, stars, message), highest tier first
GRADE_TIERS = (
    (80.0, "최우수", "🌿", 3, "탄소중립 실천이 잘 되고 있어요!"),
    (60.0, "양호", "🙂", 2, "조금만 더 보완하면 금방 올라갈 거예요."),
)
BASE_TIER = ("기초", "🪴", 1, "작은 습관부터 하나씩 실천해 보세요.")


def score_answer(value: Optional[bool]) -> float:
    if value is True:
        return 1.0
    if value is False:
        return 0.0
    return 0.5


def score_percent(normalized: Mapping[str, Optional[bool]], catalog: Catalog) -> float:
    """
    Percentage score over every catalog question, in catalog order.

    Answers for IDs the catalog does not know are ignored.
    """
    total = catalog.total_questions
    if not total:
        return 0.0
    raw_score = sum(score_answer(normalized.get(q.id)) for q in catalog.all_questions())
    return raw_score / total * 100


def grade_for_percent(percent: float) -> Grade:
    for threshold, name, icon, stars, message in GRADE_TIERS:
        if percent >= threshold:
            return Grade(name=name, icon=icon, stars=stars, message=message, percent=percent)
    name, icon, stars, message = BASE_TIER
    return Grade(name=name, icon=icon, stars=stars, message=message, percent=percent)


def compute_grade(normalized: Mapping[str, Optional[bool]], catalog: Catalog) -> Grade:
    """Pure function of the normalized answers and the catalog."""
    return grade_for_percent(score_percent(normalized, catalog))
