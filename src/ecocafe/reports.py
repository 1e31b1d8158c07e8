"""
Free-text report submission (bug reports, wrong data, ideas).

A report carries the screen it was written from and, when one is bound,
the café selected on the map.
"""

import logging
from typing import Optional

from ecocafe.location import ExternalSelection
from ecocafe.persistence import PersistenceBackend, ReportRecord

logger = logging.getLogger(__name__)

CONTEXT_LABELS = {
    "survey": "설문",
    "mapSearch": "지도(검색)",
    "mapOverview": "지도(전체)",
}
DEFAULT_CONTEXT_LABEL = "메뉴"

EMPTY_MESSAGE = "내용을 입력해주세요."
REPORT_SUCCESS_MESSAGE = "리포트가 접수되었습니다. 감사합니다!"
REPORT_FAILURE_MESSAGE = "저장 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


def context_label(context_tag: str) -> str:
    return CONTEXT_LABELS.get(context_tag, DEFAULT_CONTEXT_LABEL)


class ReportSubmitter:
    """
    Sends reports to the persistence backend.

    Like SurveyEngine.submit(), a second submit while one is outstanding
    is a no-op, and backend failures end up in status_message.
    """

    def __init__(self, persistence: PersistenceBackend, context_tag: str = "menu"):
        self.persistence = persistence
        self.context_tag = context_tag
        self.is_submitting = False
        self.status_message = ""

    @property
    def context_label(self) -> str:
        return context_label(self.context_tag)

    async def submit(self, text: str, selection: Optional[ExternalSelection] = None) -> bool:
        if self.is_submitting:
            return False

        message = text.strip()
        if not message:
            self.status_message = EMPTY_MESSAGE
            return False

        self.is_submitting = True
        self.status_message = ""
        record = ReportRecord(
            context_tag=self.context_tag,
            context_label=self.context_label,
            message=message,
            external_selection=selection,
        )
        try:
            await self.persistence.submit_report(record)
        except Exception:
            logger.exception("Report submit failed (%s)", self.context_tag)
            self.status_message = REPORT_FAILURE_MESSAGE
            return False
        finally:
            self.is_submitting = False

        self.status_message = REPORT_SUCCESS_MESSAGE
        return True
