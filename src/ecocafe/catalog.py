"""
Built-in carbon-neutral store checklist.

Four sections, each a linear chain of yes / no / don't-know questions
ending in a section-advance reference. get_catalog() hands out one
validated instance shared by reference for the life of the process.
"""
import logging
from functools import lru_cache
from typing import List, Tuple

from ecocafe.analyzer import validate_catalog
from ecocafe.config import get_settings
from ecocafe.model import ADVANCE_SECTION, Catalog, NextQuestion, Question, Section
from ecocafe.serialization import load_catalog_file

logger = logging.getLogger(__name__)

CATALOG_TITLE = "탄소중립 매장 체크리스트"

# (section id, section title, [(question id, title), ...])
_SECTIONS: List[Tuple[str, str, List[Tuple[str, str]]]] = [
    ("sec1", "1. 매장 운영·포장", [
        ("q1_1", "다회용컵/텀블러 사용을 장려하나요?"),
        ("q1_2", "개인 텀블러 할인 혜택을 제공하나요?"),
        ("q1_3", "배달·포장 시 일회용품 사용을 줄이고 있나요?"),
        ("q1_4", "다회용 컵이나 리유저블 포장 솔루션을 도입했나요?"),
    ]),
    ("sec2", "2. 메뉴 구성", [
        ("q2_1", "채식·친환경 메뉴를 상시 제공하나요?"),
        ("q2_2", "계절·지역 식재료를 활용한 메뉴가 있나요?"),
        ("q2_3", "무가당·무첨가 음료 옵션을 제공하나요?"),
        ("q2_4", "주문 시 친환경 포장/옵션을 안내하나요?"),
        ("q2_5", "원두·우유 등 공급망의 친환경 인증을 확인하나요?"),
    ]),
    ("sec3", "3. 에너지 사용", [
        ("q3_1", "매장 단열·창문이 잘 되어 있나요?"),
        ("q3_2", "실내 LED 조명 및 고효율 장비를 사용하나요?"),
        ("q3_3", "냉난방 온도 설정을 표준화했나요?"),
        ("q3_4", "전력 사용량을 모니터링하고 절감 활동을 하나요?"),
    ]),
    ("sec4", "4. 자원·폐기물", [
        ("q4_1", "분리배출 가이드를 매장에 표시하고 있나요?"),
        ("q4_2", "커피박을 따로 모아 재활용하거나 활용하고 있나요?"),
        ("q4_3", "음식물/재활용 폐기물이 잘 분리되나요?"),
        ("q4_4", "플라스틱·비닐을 줄이고 대체재를 사용하나요?"),
    ]),
]


def build_default_catalog() -> Catalog:
    sections = []
    for section_id, section_title, items in _SECTIONS:
        questions = []
        for i, (question_id, title) in enumerate(items):
            # Each question leads to the one below it; the last one closes the section
            if i + 1 < len(items):
                next_ref = NextQuestion(items[i + 1][0])
            else:
                next_ref = ADVANCE_SECTION
            questions.append(Question(id=question_id, title=title, next=next_ref))
        sections.append(Section(id=section_id, title=section_title, questions=tuple(questions)))

    return Catalog(title=CATALOG_TITLE, sections=tuple(sections))


@lru_cache
def get_catalog() -> Catalog:
    """
    The process-wide catalog.

    Loaded from settings.catalog_path when set, otherwise built in.
    Validated once; an invalid catalog raises CatalogIntegrityError here.
    """
    path = get_settings().catalog_path
    if path:
        logger.info("Loading catalog from %s", path)
        catalog = load_catalog_file(path)
    else:
        catalog = build_default_catalog()
    return validate_catalog(catalog)
