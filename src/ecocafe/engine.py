"""
Survey Engine: the navigation state machine of one assessment session.

    START -> CAFE_INFO -> SECTION_INTRO(0) -> QUESTION(0, q) ... ->
    SECTION_INTRO(1) -> ... -> SUMMARY

The engine owns the navigation state, the history stack, the answer set,
the subject record and the correcting mode. Every transition is
synchronous and runs to completion. Collaborators are injected:

    - catalog:      defaults to the shared catalog.get_catalog()
    - persistence:  PersistenceBackend used by submit()
    - geolocator:   Geolocator used by the location binding

ARCHITECTURAL RULE:
    The engine trusts the catalog. Next references are checked once, by
    analyzer.validate_catalog, when the catalog is loaded.
"""

import logging
from typing import List, Optional, Union

from ecocafe.catalog import get_catalog
from ecocafe.grading import Grade, compute_grade
from ecocafe.location import ExternalSelection, Geolocator, LocationBinding, SubjectInfo
from ecocafe.model import AdvanceSection, Catalog, NextRef, Question, Section, parse_next_ref
from ecocafe.persistence import PersistenceBackend, SurveyResultRecord
from ecocafe.state import (
    LINEAR,
    AnswerSet,
    Correcting,
    HistoryEntry,
    Mode,
    NavigationState,
    Screen,
)

logger = logging.getLogger(__name__)

SUBMIT_SUCCESS_MESSAGE = "제출되었습니다. 감사합니다!"
SUBMIT_FAILURE_MESSAGE = "제출 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


class NavigationError(RuntimeError):
    """Raised when an operation's precondition does not hold."""
    pass


class SurveyEngine:
    """
    Drives one survey session.

    Args:
        catalog: Question catalog (shared, never mutated)
        persistence: Store for the finalized result
        geolocator: Device position provider
        selection: External selection already chosen on the map
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        persistence: Optional[PersistenceBackend] = None,
        geolocator: Optional[Geolocator] = None,
        selection: Optional[ExternalSelection] = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else get_catalog()
        self.persistence = persistence

        self.state = NavigationState()
        self.history: List[HistoryEntry] = []
        self.answers = AnswerSet()
        self.mode: Mode = LINEAR

        self.subject = SubjectInfo()
        self.selection = selection
        self.location = LocationBinding(self.subject, geolocator)

        self.is_submitting = False
        self.submit_message = ""

        self._sync_location()

    # =========================================================================
    # Read helpers
    # =========================================================================

    @property
    def is_correcting(self) -> bool:
        return isinstance(self.mode, Correcting)

    @property
    def is_complete(self) -> bool:
        return self.state.screen is Screen.SUMMARY

    @property
    def can_go_back(self) -> bool:
        return self.state.screen not in (Screen.START, Screen.SUMMARY)

    def can_start_survey(self) -> bool:
        """Guard for start_survey(): a café name or a map selection."""
        return bool(self.subject.name.strip()) or self.selection is not None

    def current_section(self) -> Optional[Section]:
        return self.catalog.get_section(self.state.section_index)

    def current_question(self) -> Optional[Question]:
        if self.state.screen is not Screen.QUESTION:
            return None
        section = self.current_section()
        return section.get_question(self.state.question_id) if section else None

    def progress(self) -> Optional[float]:
        """Percent of sections reached, shown on section and question screens only."""
        if self.state.screen not in (Screen.SECTION_INTRO, Screen.QUESTION):
            return None
        total = len(self.catalog.sections)
        if not total:
            return None
        return (self.state.section_index + 1) / total * 100

    def grade(self) -> Grade:
        return compute_grade(self.answers.normalized, self.catalog)

    # =========================================================================
    # Subject input
    # =========================================================================

    def set_name(self, name: str) -> None:
        self.subject.name = name

    def set_address(self, address: Optional[str]) -> None:
        self.subject.address = address

    def select_location(self, selection: Optional[ExternalSelection]) -> None:
        """Bind a café chosen through the map collaborator."""
        self.selection = selection
        self._sync_location()

    # =========================================================================
    # Transitions
    # =========================================================================

    def go_to_info(self) -> NavigationState:
        return self._go(NavigationState(section_index=self.state.section_index, screen=Screen.CAFE_INFO))

    def start_survey(self) -> NavigationState:
        return self._go(NavigationState(section_index=0, screen=Screen.SECTION_INTRO))

    def start_questions(self) -> NavigationState:
        index = self.state.section_index
        first_id = self.catalog.first_question_id(index)
        if first_id is None:
            raise NavigationError(f"No questions to start in section {index}")
        return self._go(NavigationState.question(index, first_id))

    def select(
        self,
        question_id: str,
        raw_answer: str,
        next_ref: Union[NextRef, str, None] = None,
    ) -> NavigationState:
        """
        Record an answer and move on.

        Args:
            question_id: Question being answered
            raw_answer: Answer label; unknown labels normalize to None
            next_ref: Where to go; defaults to the question's own next

        Returns:
            The new navigation state
        """
        if next_ref is None:
            question = self.catalog.get_question(question_id)
            if question is None:
                raise NavigationError(f"Unknown question {question_id!r}")
            next_ref = question.next
        else:
            next_ref = parse_next_ref(next_ref)

        previous = self.answers.snapshot(question_id)
        self.answers.record(question_id, raw_answer)

        if isinstance(self.mode, Correcting):
            return_to = self.mode.return_to
            self.mode = LINEAR
            logger.debug("Corrected %s -> %r", question_id, raw_answer)
            return self._go(return_to)

        self.history.append(HistoryEntry(self.state, question_id, previous))

        if isinstance(next_ref, AdvanceSection):
            next_index = self.state.section_index + 1
            if next_index < len(self.catalog.sections):
                target = NavigationState(section_index=next_index, screen=Screen.SECTION_INTRO)
            else:
                target = NavigationState(section_index=next_index, screen=Screen.SUMMARY)
        else:
            target = NavigationState.question(self.state.section_index, next_ref.question_id)
        return self._go(target)

    def edit(self, section_index: int, question_id: str) -> NavigationState:
        """Jump from the summary to one question to revise it."""
        if isinstance(self.mode, Correcting):
            raise NavigationError("Already correcting an answer; return to the summary first")
        return_to = self.state
        if return_to.screen is not Screen.SUMMARY:
            return_to = NavigationState(section_index=return_to.section_index, screen=Screen.SUMMARY)
        self.mode = Correcting(return_to=return_to)
        return self._go(NavigationState.question(section_index, question_id))

    def back(self) -> NavigationState:
        if self.state.screen is Screen.CAFE_INFO:
            return self._go(NavigationState())

        if isinstance(self.mode, Correcting):
            return_to = self.mode.return_to
            self.mode = LINEAR
            return self._go(return_to)

        if self.history:
            entry = self.history.pop()
            self.answers.restore(entry.question_id, entry.previous_answer)
            return self._go(entry.state)

        return self._go(NavigationState())

    def _go(self, target: NavigationState) -> NavigationState:
        logger.debug("%s -> %s (section %d)", self.state.step, target.step, target.section_index)
        self.state = target
        self._sync_location()
        return target

    def _sync_location(self) -> None:
        self.location.sync(self.state.screen is Screen.CAFE_INFO, self.selection)

    # =========================================================================
    # Submission
    # =========================================================================

    def build_result_record(self) -> SurveyResultRecord:
        """Finalized record; subject fields fall back to the map selection."""
        subject = self.subject
        selection = self.selection

        coordinates = subject.coordinates
        if coordinates is None and selection is not None:
            coordinates = selection.coordinates

        return SurveyResultRecord(
            subject_name=subject.name or (selection.name if selection else None) or None,
            subject_address=subject.address or (selection.address if selection else None) or None,
            gps_enabled=subject.gps_enabled or bool(selection and selection.lat and selection.lng),
            coordinates=coordinates,
            raw_answers=dict(self.answers.raw),
            normalized_answers=dict(self.answers.normalized),
            grade=self.grade(),
            external_selection=selection,
        )

    async def submit(self) -> bool:
        """
        Send the result to the persistence backend.

        A call made while another submit is outstanding does nothing.
        Backend failures are reported through submit_message, not raised.

        Returns:
            True if the backend accepted the record
        """
        if self.is_submitting:
            return False
        if self.persistence is None:
            raise NavigationError("No persistence backend configured")

        self.is_submitting = True
        self.submit_message = ""
        try:
            await self.persistence.submit_result(self.build_result_record())
        except Exception:
            logger.exception("Failed to submit survey")
            self.submit_message = SUBMIT_FAILURE_MESSAGE
            return False
        finally:
            self.is_submitting = False

        self.submit_message = SUBMIT_SUCCESS_MESSAGE
        return True
