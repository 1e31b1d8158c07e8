"""
Demo: walk one survey session end to end against the in-memory store.

Picks a café as if chosen on the map, answers every question, corrects
one answer from the summary, submits, and prints the resulting markers.
"""

import asyncio

from ecocafe.analyzer import analyze_catalog
from ecocafe.config import configure_logging
from ecocafe.engine import SurveyEngine
from ecocafe.location import selection_from_place
from ecocafe.model import NO_LABEL, UNKNOWN_LABEL, YES_LABEL
from ecocafe.overview import load_cafe_points
from ecocafe.persistence import InMemoryPersistence


PLACE = {
    "id": "26338954",
    "place_name": "그린빈 커피 시청점",
    "x": "126.9779",
    "y": "37.5663",
    "road_address_name": "서울 중구 세종대로 110",
}


def pick_answer(question_id: str) -> str:
    if question_id.startswith("q3"):
        return UNKNOWN_LABEL
    if question_id.endswith("_4"):
        return NO_LABEL
    return YES_LABEL


async def main() -> None:
    persistence = InMemoryPersistence()
    engine = SurveyEngine(persistence=persistence)

    report = analyze_catalog(engine.catalog)
    print(f"Catalog: {report.catalog_title} ({report.total_sections} sections, "
          f"{report.total_questions} questions, {len(report.warnings)} warnings)")

    engine.select_location(selection_from_place(PLACE))
    engine.go_to_info()
    engine.start_survey()

    while not engine.is_complete:
        question = engine.current_question()
        if question is None:
            print(f"\n[{engine.current_section().title}] {engine.progress():.0f}%")
            engine.start_questions()
            continue
        answer = pick_answer(question.id)
        print(f"  {question.title} -> {answer}")
        engine.select(question.id, answer)

    grade = engine.grade()
    print(f"\n{grade.icon} {grade.name} {grade.star_string} ({grade.percent:.1f}%)")

    engine.edit(2, "q3_1")
    engine.select("q3_1", YES_LABEL)
    grade = engine.grade()
    print(f"after correction: {grade.name} {grade.star_string} ({grade.percent:.1f}%)")

    await engine.submit()
    print(engine.submit_message)

    for point in await load_cafe_points(persistence):
        print(f"  {point.name} @ ({point.lat}, {point.lng}) {'★' * point.stars} {point.options}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
