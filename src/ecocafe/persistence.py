"""
Persistence collaborator interface and record types.

The engine and the report submitter never talk to a concrete store. They
receive a PersistenceBackend and hand it immutable records. Storage
schema, retries and retention are the backend's concern.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from ecocafe.grading import Grade
from ecocafe.location import Coordinates, ExternalSelection
from ecocafe.serialization import report_record_to_dict, result_record_to_dict

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised by a backend when a write or read fails."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SurveyResultRecord:
    """Finalized survey result handed to the backend on submit."""

    subject_name: Optional[str]
    subject_address: Optional[str]
    gps_enabled: bool
    coordinates: Optional[Coordinates]
    raw_answers: Dict[str, str]
    normalized_answers: Dict[str, Optional[bool]]
    grade: Grade
    external_selection: Optional[ExternalSelection] = None
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ReportRecord:
    """Free-text feedback (bug report, wrong data, idea)."""

    context_tag: str
    context_label: str
    message: str
    external_selection: Optional[ExternalSelection] = None
    timestamp: datetime = field(default_factory=utcnow)


class PersistenceBackend(Protocol):
    """Async store for results and reports."""

    async def submit_result(self, record: SurveyResultRecord) -> None:
        ...

    async def submit_report(self, record: ReportRecord) -> None:
        ...

    async def list_results(self) -> List[Dict[str, Any]]:
        """Stored results as plain dicts, in the layout of result_record_to_dict."""
        ...


class InMemoryPersistence:
    """
    Reference backend keeping everything in process memory.

    Results are stored in their serialized dict form so list_results()
    returns exactly what a document store would hand back.
    """

    def __init__(self) -> None:
        self.results: List[Dict[str, Any]] = []
        self.reports: List[Dict[str, Any]] = []

    async def submit_result(self, record: SurveyResultRecord) -> None:
        doc = result_record_to_dict(record)
        doc["id"] = f"result-{len(self.results) + 1}"
        self.results.append(doc)
        logger.debug("Stored result %s for %r", doc["id"], record.subject_name)

    async def submit_report(self, record: ReportRecord) -> None:
        self.reports.append(report_record_to_dict(record))

    async def list_results(self) -> List[Dict[str, Any]]:
        return [dict(doc) for doc in self.results]
