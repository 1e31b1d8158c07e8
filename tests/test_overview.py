"""
Tests for the map overview read model.
"""

import pytest

from ecocafe.engine import SurveyEngine
from ecocafe.location import ExternalSelection
from ecocafe.model import NO_LABEL, YES_LABEL
from ecocafe.overview import (
    DERIVED_TAGS,
    LOAD_FAILURE_MESSAGE,
    OPTION_PRESETS,
    UNNAMED_CAFE,
    CafeOverview,
    CafePoint,
    build_cafe_points,
    filter_points,
    is_yes,
    load_cafe_points,
    matches_option,
    point_from_document,
    stars_from_grade,
)
from ecocafe.persistence import InMemoryPersistence, PersistenceError


@pytest.mark.parametrize("value, expected", [
    (True, True),
    (False, False),
    ("예", True),
    ("네", True),
    ("아니요", False),
    ("YES", True),
    ("y", True),
    ("모르겠어요", False),
    (None, False),
    (1, False),
])
def test_is_yes(value, expected):
    assert is_yes(value) is expected


@pytest.mark.parametrize("grade, stars", [
    ({"stars": 2}, 2),
    ({"stars": "★★★"}, 3),
    ({"stars": None}, 0),
    ({}, 0),
    (None, 0),
])
def test_stars_from_grade(grade, stars):
    assert stars_from_grade(grade) == stars


def test_point_from_full_document():
    doc = {
        "cafeName": "Green Bean",
        "cafeAddress": "서울 중구",
        "location": {"lat": 37.1, "lng": 127.2},
        "answersBool": {"q1_2": True, "q4_2": False},
        "grade": {"stars": 3},
        "options": ["재생에너지"],
    }
    point = point_from_document("r1", doc)
    assert point == CafePoint(
        id="r1", lat=37.1, lng=127.2, name="Green Bean", stars=3,
        address="서울 중구", options=["재생에너지", "텀블러 할인"],
    )


def test_point_defaults_for_sparse_document():
    point = point_from_document("r2", {})
    assert point.name == UNNAMED_CAFE
    assert point.lat == pytest.approx(37.5665)
    assert point.lng == pytest.approx(126.978)
    assert point.stars == 0
    assert point.address is None
    assert point.options == []


def test_default_centre_follows_settings(monkeypatch):
    monkeypatch.setenv("ECOCAFE_DEFAULT_LAT", "35.1")
    monkeypatch.setenv("ECOCAFE_DEFAULT_LNG", "129.0")
    point = point_from_document("r3", {"location": None})
    assert (point.lat, point.lng) == (35.1, 129.0)


def test_raw_answers_used_when_normalized_missing():
    doc = {"answers": {"q4_2": "예"}, "tags": ["커피박 활용"]}
    point = point_from_document("r4", doc)
    assert point.options == ["커피박 활용"]


def test_build_points_assigns_missing_ids():
    points = build_cafe_points([{"id": "a"}, {"cafeName": "x"}])
    assert [p.id for p in points] == ["a", "doc-1"]


def test_filter_points_by_keyword():
    points = [
        CafePoint(id="1", lat=0, lng=0, name="Green Bean", address="서울 중구"),
        CafePoint(id="2", lat=0, lng=0, name="Blue Cup", address="부산 해운대구"),
    ]
    assert [p.id for p in filter_points(points, "green")] == ["1"]
    assert [p.id for p in filter_points(points, "해운대")] == ["2"]
    assert len(filter_points(points, "  ")) == 2
    assert filter_points(points, "nothing") == []


def test_matches_option():
    point = CafePoint(id="1", lat=0, lng=0, name="n", options=["텀블러 할인"])
    assert matches_option(point, None)
    assert matches_option(point, "텀블러")
    assert not matches_option(point, "채식 메뉴")


@pytest.mark.asyncio
async def test_points_from_submitted_results(catalog, persistence):
    selection = ExternalSelection(name="Map Cafe", lat=37.4, lng=127.1)
    engine = SurveyEngine(catalog=catalog, persistence=persistence, selection=selection)
    engine.answers.record("q1_2", YES_LABEL)
    engine.answers.record("q4_2", NO_LABEL)
    await engine.submit()

    points = await load_cafe_points(persistence)

    assert len(points) == 1
    point = points[0]
    assert point.name == "Map Cafe"
    assert (point.lat, point.lng) == (37.4, 127.1)
    assert point.stars == 1
    assert point.options == ["텀블러 할인"]


@pytest.mark.parametrize("option", OPTION_PRESETS)
def test_each_preset_matches_its_own_tag(option):
    tagged = CafePoint(id="1", lat=0, lng=0, name="n", options=[option])
    untagged = CafePoint(id="2", lat=0, lng=0, name="n", options=[])
    assert matches_option(tagged, option)
    assert not matches_option(untagged, option)


def test_derived_tags_are_presets():
    assert {tag for _, tag in DERIVED_TAGS} <= set(OPTION_PRESETS)


@pytest.mark.asyncio
async def test_load_cafe_points_returns_empty_on_backend_failure(failing_persistence):
    assert await load_cafe_points(failing_persistence) == []


class TestCafeOverview:

    @pytest.mark.asyncio
    async def test_failed_load_sets_status(self, failing_persistence):
        overview = CafeOverview(failing_persistence)

        points = await overview.load()

        assert points == []
        assert overview.points == []
        assert overview.status_message == LOAD_FAILURE_MESSAGE
        assert not overview.is_loading

    @pytest.mark.asyncio
    async def test_load_can_be_retried(self):
        class Flaky(InMemoryPersistence):
            def __init__(self):
                super().__init__()
                self.attempts = 0

            async def list_results(self):
                self.attempts += 1
                if self.attempts == 1:
                    raise PersistenceError("store unavailable")
                return [{"id": "r1", "cafeName": "Green Bean"}]

        overview = CafeOverview(Flaky())
        await overview.load()
        assert overview.status_message == LOAD_FAILURE_MESSAGE

        points = await overview.load()

        assert [p.name for p in points] == ["Green Bean"]
        assert overview.status_message == ""

    def test_toggle_option(self, persistence):
        overview = CafeOverview(persistence)
        assert overview.toggle_option("채식 메뉴") == "채식 메뉴"
        assert overview.toggle_option("텀블러 할인") == "텀블러 할인"
        assert overview.toggle_option("텀블러 할인") is None

    def test_toggle_unknown_option(self, persistence):
        overview = CafeOverview(persistence)
        with pytest.raises(ValueError):
            overview.toggle_option("free wifi")
        assert overview.selected_option is None

    def test_keyword_and_dimming(self, persistence):
        overview = CafeOverview(persistence)
        overview.points = [
            CafePoint(id="1", lat=0, lng=0, name="Green Bean", options=["텀블러 할인"]),
            CafePoint(id="2", lat=0, lng=0, name="Blue Cup", options=[]),
        ]
        overview.toggle_option("텀블러 할인")

        assert [p.id for p in overview.visible_points()] == ["1", "2"]
        assert [overview.is_dimmed(p) for p in overview.points] == [False, True]

        overview.keyword = "blue"
        assert [p.id for p in overview.visible_points()] == ["2"]
