"""
Core Catalog Model Objects

Defines the fundamental data structures of the self-assessment catalog.

These are pure data classes representing:
    - Next references (where a question leads)
    - Questions (yes / no / don't-know items)
    - Sections (ordered groups of questions)
    - Catalogs (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about navigation state or persistence
        - Are immutable (frozen dataclasses, tuples)
        - Are fully serializable
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union


YES_LABEL = "예"
NO_LABEL = "아니요"
UNKNOWN_LABEL = "모르겠어요"

ANSWER_LABELS = (YES_LABEL, NO_LABEL, UNKNOWN_LABEL)

# Textual form of the section-advance reference in catalog files
ADVANCE_SECTION_TOKEN = "NEXT_SECTION"


def normalize_answer(raw_answer: str) -> Optional[bool]:
    """
    Map a raw answer label onto the tri-state value.

    Only exact label matches count. Everything else, including the
    don't-know label, is unknown (None).
    """
    if raw_answer == YES_LABEL:
        return True
    if raw_answer == NO_LABEL:
        return False
    return None


@dataclass(frozen=True)
class NextQuestion:
    """
    Points at another question inside the same section.

    Properties:
        question_id: Target question identifier
    """

    question_id: str


@dataclass(frozen=True)
class AdvanceSection:
    """
    Marks the end of a section.

    Answering a question with this reference moves the flow to the
    next section's intro, or to the summary after the last section.
    """


ADVANCE_SECTION = AdvanceSection()

NextRef = Union[NextQuestion, AdvanceSection]


def parse_next_ref(value: Union[str, NextQuestion, AdvanceSection]) -> NextRef:
    """Convert the catalog-file string form into a NextRef."""
    if isinstance(value, (NextQuestion, AdvanceSection)):
        return value
    if value == ADVANCE_SECTION_TOKEN:
        return ADVANCE_SECTION
    return NextQuestion(value)


def next_ref_to_str(ref: NextRef) -> str:
    if isinstance(ref, AdvanceSection):
        return ADVANCE_SECTION_TOKEN
    return ref.question_id


@dataclass(frozen=True)
class Question:
    """
    Represents a single checklist item.

    Properties:
        id:
            Unique identifier (stable across catalog versions)
            Examples: "q1_1", "q4_2"

        title:
            Human-readable question text

        next:
            Where answering leads. NextQuestion stays in the section,
            AdvanceSection leaves it.
    """

    id: str
    title: str
    next: NextRef = ADVANCE_SECTION


@dataclass(frozen=True)
class Section:
    """
    Ordered group of questions, traversed as a unit.

    Properties:
        id: Section identifier (e.g., "sec1")
        title: Heading shown on the section intro
        questions: Questions in display order
    """

    id: str
    title: str
    questions: Tuple[Question, ...] = field(default_factory=tuple)

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    @property
    def first_question(self) -> Optional[Question]:
        return self.questions[0] if self.questions else None


@dataclass(frozen=True)
class Catalog:
    """
    Root container for the whole checklist.

    Sections are visited strictly in this order; no section is skipped.

    INVARIANTS (checked by analyzer.validate_catalog):
        - Question IDs are unique across the catalog
        - Every NextQuestion points at a question in the same section
        - Every section's last question uses AdvanceSection
    """

    title: str
    sections: Tuple[Section, ...] = field(default_factory=tuple)

    def get_section(self, section_index: int) -> Optional[Section]:
        """
        Retrieve a section by position.

        Args:
            section_index: Zero-based index

        Returns:
            Section or None if out of bounds
        """
        if 0 <= section_index < len(self.sections):
            return self.sections[section_index]
        return None

    def find_question(self, question_id: str) -> Optional[Tuple[int, Question]]:
        """
        Locate a question anywhere in the catalog.

        Returns:
            (section_index, Question) or None if not found
        """
        for index, section in enumerate(self.sections):
            question = section.get_question(question_id)
            if question is not None:
                return index, question
        return None

    def get_question(self, question_id: str) -> Optional[Question]:
        found = self.find_question(question_id)
        return found[1] if found else None

    def first_question_id(self, section_index: int) -> Optional[str]:
        section = self.get_section(section_index)
        if section is None or section.first_question is None:
            return None
        return section.first_question.id

    def all_questions(self) -> Iterator[Question]:
        """Yield every question in catalog order."""
        for section in self.sections:
            yield from section.questions

    def question_ids(self) -> List[str]:
        return [q.id for q in self.all_questions()]

    @property
    def total_questions(self) -> int:
        return sum(len(section.questions) for section in self.sections)
