"""
Tests for catalog model objects.

These tests verify:
    - Basic model creation
    - Next reference parsing
    - Answer normalization
    - Retrieval methods
"""

import dataclasses

import pytest

from ecocafe.model import (
    ADVANCE_SECTION,
    AdvanceSection,
    Catalog,
    NextQuestion,
    Question,
    Section,
    next_ref_to_str,
    normalize_answer,
    parse_next_ref,
)


def build_small_catalog() -> Catalog:
    return Catalog(
        title="Small",
        sections=(
            Section(id="a", title="A", questions=(
                Question(id="a1", title="A1", next=NextQuestion("a2")),
                Question(id="a2", title="A2", next=ADVANCE_SECTION),
            )),
            Section(id="b", title="B", questions=(
                Question(id="b1", title="B1", next=ADVANCE_SECTION),
            )),
        ),
    )


class TestNormalizeAnswer:
    """Tri-state normalization of raw labels."""

    def test_yes_label(self):
        assert normalize_answer("예") is True

    def test_no_label(self):
        assert normalize_answer("아니요") is False

    def test_dont_know_label(self):
        assert normalize_answer("모르겠어요") is None

    @pytest.mark.parametrize("label", ["", "네", "아니오", "yes", "예 ", "YES"])
    def test_other_labels_are_unknown(self, label):
        """Only exact label matches count."""
        assert normalize_answer(label) is None


class TestNextRef:
    """Test the tagged next-reference variants."""

    def test_parse_sentinel(self):
        assert parse_next_ref("NEXT_SECTION") == ADVANCE_SECTION
        assert isinstance(parse_next_ref("NEXT_SECTION"), AdvanceSection)

    def test_parse_question_id(self):
        assert parse_next_ref("q1_2") == NextQuestion("q1_2")

    def test_parse_passes_variants_through(self):
        ref = NextQuestion("x")
        assert parse_next_ref(ref) is ref
        assert parse_next_ref(ADVANCE_SECTION) is ADVANCE_SECTION

    def test_to_str(self):
        assert next_ref_to_str(ADVANCE_SECTION) == "NEXT_SECTION"
        assert next_ref_to_str(NextQuestion("q2_1")) == "q2_1"

    def test_advance_section_instances_are_equal(self):
        assert AdvanceSection() == ADVANCE_SECTION


class TestQuestion:

    def test_default_next_advances(self):
        """A question with no explicit next closes its section."""
        q = Question(id="q", title="Q")
        assert q.next == ADVANCE_SECTION

    def test_question_is_immutable(self):
        q = Question(id="q", title="Q")
        with pytest.raises(dataclasses.FrozenInstanceError):
            q.title = "changed"


class TestCatalog:
    """Test catalog retrieval helpers."""

    def test_get_section_in_bounds(self):
        catalog = build_small_catalog()
        assert catalog.get_section(0).id == "a"
        assert catalog.get_section(1).id == "b"

    def test_get_section_out_of_bounds(self):
        catalog = build_small_catalog()
        assert catalog.get_section(-1) is None
        assert catalog.get_section(2) is None

    def test_find_question(self):
        catalog = build_small_catalog()
        index, question = catalog.find_question("b1")
        assert index == 1
        assert question.title == "B1"

    def test_find_missing_question(self):
        catalog = build_small_catalog()
        assert catalog.find_question("zz") is None
        assert catalog.get_question("zz") is None

    def test_first_question_id(self):
        catalog = build_small_catalog()
        assert catalog.first_question_id(0) == "a1"
        assert catalog.first_question_id(5) is None

    def test_question_ids_in_catalog_order(self):
        catalog = build_small_catalog()
        assert catalog.question_ids() == ["a1", "a2", "b1"]
        assert catalog.total_questions == 3

    def test_section_get_question(self):
        section = build_small_catalog().sections[0]
        assert section.get_question("a2").next == ADVANCE_SECTION
        assert section.get_question("b1") is None
        assert section.first_question.id == "a1"

    def test_empty_section_has_no_first_question(self):
        assert Section(id="e", title="E").first_question is None
