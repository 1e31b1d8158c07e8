"""
Session state objects owned by a SurveyEngine.

    - Screen / NavigationState: the single current step
    - HistoryEntry: what back() needs to undo one forward answer
    - AnswerSet: raw labels and tri-state values, kept key-synchronised
    - Linear / Correcting: whether answers follow the flow or patch one item

Only the engine mutates these. Nothing here outlives a session.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union

from ecocafe.model import normalize_answer


class Screen(Enum):
    START = "START"
    CAFE_INFO = "CAFE_INFO"
    SECTION_INTRO = "SECTION_INTRO"
    QUESTION = "QUESTION"
    SUMMARY = "SUMMARY"


@dataclass(frozen=True)
class NavigationState:
    """
    Exactly one current step.

    Properties:
        section_index: Active section, -1 before the survey starts
        screen: Which kind of step is shown
        question_id: Set only when screen is QUESTION
    """

    section_index: int = -1
    screen: Screen = Screen.START
    question_id: Optional[str] = None

    @classmethod
    def question(cls, section_index: int, question_id: str) -> "NavigationState":
        return cls(section_index=section_index, screen=Screen.QUESTION, question_id=question_id)

    @property
    def step(self) -> str:
        """Question ID on a question screen, otherwise the screen name."""
        if self.screen is Screen.QUESTION and self.question_id is not None:
            return self.question_id
        return self.screen.value


# (raw label, normalized value) of one answer
AnswerSnapshot = Tuple[str, Optional[bool]]


@dataclass(frozen=True)
class HistoryEntry:
    state: NavigationState
    question_id: str
    previous_answer: Optional[AnswerSnapshot] = None


class AnswerSet:
    """
    Raw answer labels and their normalized tri-state values.

    INVARIANT:
        raw and normalized always hold the same keys.
    """

    def __init__(self) -> None:
        self.raw: Dict[str, str] = {}
        self.normalized: Dict[str, Optional[bool]] = {}

    def record(self, question_id: str, raw_answer: str) -> Optional[bool]:
        """Store (overwrite) an answer and return its normalized value."""
        value = normalize_answer(raw_answer)
        self.raw[question_id] = raw_answer
        self.normalized[question_id] = value
        return value

    def discard(self, question_id: str) -> None:
        self.raw.pop(question_id, None)
        self.normalized.pop(question_id, None)

    def snapshot(self, question_id: str) -> Optional[AnswerSnapshot]:
        if question_id not in self.raw:
            return None
        return self.raw[question_id], self.normalized[question_id]

    def restore(self, question_id: str, snapshot: Optional[AnswerSnapshot]) -> None:
        if snapshot is None:
            self.discard(question_id)
            return
        self.raw[question_id], self.normalized[question_id] = snapshot

    def get_raw(self, question_id: str) -> Optional[str]:
        return self.raw.get(question_id)

    def get_normalized(self, question_id: str) -> Optional[bool]:
        return self.normalized.get(question_id)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self.raw

    def __len__(self) -> int:
        return len(self.raw)

    def __iter__(self) -> Iterator[str]:
        return iter(self.raw)


@dataclass(frozen=True)
class Linear:
    """Answers follow the catalog flow and are recorded in history."""


@dataclass(frozen=True)
class Correcting:
    """
    One answer is being revised from the summary.

    The next select() returns to return_to; history never grows here.
    """

    return_to: NavigationState = field(default_factory=lambda: NavigationState(screen=Screen.SUMMARY))


LINEAR = Linear()

Mode = Union[Linear, Correcting]
