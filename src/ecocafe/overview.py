"""
Map overview read model.

Turns stored result documents (the result_record_to_dict layout, or older
documents missing some fields) into CafePoint markers, and filters them by
keyword and feature tag. CafeOverview holds the state of one overview screen.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from ecocafe.config import get_settings
from ecocafe.model import NO_LABEL, YES_LABEL
from ecocafe.persistence import PersistenceBackend

logger = logging.getLogger(__name__)

UNNAMED_CAFE = "이름 없음"
LOAD_FAILURE_MESSAGE = "지점 정보를 불러오지 못했습니다. 잠시 후 다시 시도해주세요."

OPTION_PRESETS = (
    "텀블러 할인",
    "커피박 활용",
    "다회용컵 사용",
    "채식 메뉴",
    "재생에너지",
    "분리수거 우수",
)

# question id -> tag added when the answer is yes
DERIVED_TAGS = (
    ("q1_2", "텀블러 할인"),
    ("q4_2", "커피박 활용"),
)


@dataclass(frozen=True)
class CafePoint:
    id: str
    lat: float
    lng: float
    name: str
    stars: int = 0
    address: Optional[str] = None
    options: List[str] = field(default_factory=list)


def is_yes(value: Any) -> bool:
    """Loose yes check for stored answers of either shape."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lower = value.lower()
        if lower in (YES_LABEL, "네"):
            return True
        if lower == NO_LABEL:
            return False
        return lower in ("yes", "y")
    return False


def stars_from_grade(grade: Any) -> int:
    """Star count from a stored grade: an int, or a string of star glyphs."""
    if not isinstance(grade, Mapping):
        return 0
    value = grade.get("stars")
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return len(value)
    return 0


def _coordinate(value: Any, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    # 0 is treated as missing, same as an absent field
    return number or fallback


def point_from_document(doc_id: str, item: Mapping[str, Any]) -> CafePoint:
    settings = get_settings()
    location = item.get("location") or {}
    answers_bool = item.get("answersBool") or {}
    answers = item.get("answers") or {}

    derived = []
    for question_id, tag in DERIVED_TAGS:
        value = answers_bool.get(question_id)
        if value is None:
            value = answers.get(question_id)
        if is_yes(value):
            derived.append(tag)

    existing = item.get("options") or item.get("tags") or []
    options = list(dict.fromkeys([*existing, *derived]))

    return CafePoint(
        id=doc_id,
        lat=_coordinate(location.get("lat"), settings.default_lat),
        lng=_coordinate(location.get("lng"), settings.default_lng),
        name=item.get("cafeName") or UNNAMED_CAFE,
        stars=stars_from_grade(item.get("grade")),
        address=item.get("cafeAddress") or None,
        options=options,
    )


def build_cafe_points(documents: Iterable[Mapping[str, Any]]) -> List[CafePoint]:
    """Build markers from stored documents. Documents without an "id" get a positional one."""
    points = []
    for index, doc in enumerate(documents):
        doc_id = str(doc.get("id") or f"doc-{index}")
        points.append(point_from_document(doc_id, doc))
    logger.debug("Built %d cafe points", len(points))
    return points


def filter_points(points: Iterable[CafePoint], keyword: str) -> List[CafePoint]:
    """Case-insensitive name/address match. A blank keyword keeps everything."""
    query = keyword.strip().lower()
    if not query:
        return list(points)
    return [
        p for p in points
        if query in p.name.lower() or query in (p.address or "").lower()
    ]


def matches_option(point: CafePoint, option: Optional[str]) -> bool:
    if not option:
        return True
    wanted = option.lower()
    return any(wanted in tag.lower() for tag in point.options if tag)


class CafeOverview:
    """
    State of the map overview: loaded markers, keyword and option pill.

    load() never raises for backend failures. They are logged and surface
    as status_message with an empty marker set, and load() can be retried.
    """

    def __init__(self, persistence: PersistenceBackend):
        self.persistence = persistence
        self.points: List[CafePoint] = []
        self.keyword = ""
        self.selected_option: Optional[str] = None
        self.is_loading = False
        self.status_message = ""

    async def load(self) -> List[CafePoint]:
        if self.is_loading:
            return self.points

        self.is_loading = True
        self.status_message = ""
        try:
            documents = await self.persistence.list_results()
        except Exception:
            logger.exception("Failed to load cafe points")
            self.points = []
            self.status_message = LOAD_FAILURE_MESSAGE
            return self.points
        finally:
            self.is_loading = False

        self.points = build_cafe_points(documents)
        return self.points

    def toggle_option(self, option: str) -> Optional[str]:
        """Select a preset pill, or clear it when it is already selected."""
        if option not in OPTION_PRESETS:
            raise ValueError(f"Unknown option {option!r}")
        self.selected_option = None if option == self.selected_option else option
        return self.selected_option

    def visible_points(self) -> List[CafePoint]:
        return filter_points(self.points, self.keyword)

    def is_dimmed(self, point: CafePoint) -> bool:
        return not matches_option(point, self.selected_option)


async def load_cafe_points(persistence: PersistenceBackend) -> List[CafePoint]:
    """Fetch stored results and build markers; [] when the backend fails."""
    return await CafeOverview(persistence).load()
