"""
Catalog Analyzer: integrity diagnostics for question catalogs.

This module provides lightweight analysis of Catalog objects:
    - Question inventory per section
    - Next-reference integrity (dangling, cross-section, missing sentinel)
    - Graph reachability and cycles inside each section
    - Warning flags for catalog bugs

IMPORTANT: analyze_catalog does NOT modify the catalog.
It only produces read-only reports. validate_catalog turns a report with
problems into a CatalogIntegrityError, and is the load-time gate the
engine relies on.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ecocafe.model import AdvanceSection, Catalog, NextQuestion, Section

logger = logging.getLogger(__name__)


class CatalogIntegrityError(Exception):
    """Raised when a catalog breaks the flow-graph invariants."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("Catalog integrity check failed: " + "; ".join(self.problems))


def _find_cycle_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                    rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycle_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class SectionReport:
    """Per-section findings."""

    section_id: str
    total_questions: int = 0
    dangling_refs: List[str] = field(default_factory=list)      # "q -> target"
    cross_section_refs: List[str] = field(default_factory=list)  # "q -> target"
    last_question_not_terminal: Optional[str] = None
    unreachable_questions: Set[str] = field(default_factory=set)
    cycle_example: Optional[List[str]] = None


@dataclass
class CatalogReport:
    """Comprehensive analysis report for a catalog."""

    catalog_title: str
    total_sections: int = 0
    total_questions: int = 0

    duplicate_ids: Set[str] = field(default_factory=set)
    empty_sections: List[str] = field(default_factory=list)
    sections: List[SectionReport] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def is_valid(self) -> bool:
        return not self.warnings


def _analyze_section(section: Section, owner_by_id: Dict[str, str]) -> SectionReport:
    report = SectionReport(section_id=section.id, total_questions=len(section.questions))
    local_ids = {q.id for q in section.questions}

    outgoing: Dict[str, List[str]] = defaultdict(list)
    for question in section.questions:
        ref = question.next
        if isinstance(ref, NextQuestion):
            target = ref.question_id
            if target in local_ids:
                outgoing[question.id].append(target)
            elif target in owner_by_id:
                report.cross_section_refs.append(f"{question.id} -> {target}")
            else:
                report.dangling_refs.append(f"{question.id} -> {target}")

    if section.questions:
        last = section.questions[-1]
        if not isinstance(last.next, AdvanceSection):
            report.last_question_not_terminal = last.id

        # Reachability from the first question, which is where start_questions() lands
        reachable: Set[str] = set()
        stack = [section.questions[0].id]
        while stack:
            node = stack.pop()
            if node in reachable:
                continue
            reachable.add(node)
            for neighbor in outgoing.get(node, []):
                if neighbor not in reachable:
                    stack.append(neighbor)
        report.unreachable_questions = local_ids - reachable

    visited: Set[str] = set()
    for question_id in list(outgoing.keys()):
        if question_id not in visited:
            cycle = _find_cycle_dfs(outgoing, question_id, visited, set(), [])
            if cycle:
                report.cycle_example = cycle
                break

    return report


def analyze_catalog(catalog: Catalog) -> CatalogReport:
    """
    Perform integrity analysis of a Catalog.

    Checks for:
    - Duplicate question IDs and empty sections
    - NextQuestion targets that do not exist, or live in another section
    - Sections whose last question does not advance the section
    - Questions unreachable from the section's first question
    - Cycles in the next graph

    Returns a CatalogReport with findings and warnings.
    """
    report = CatalogReport(catalog_title=catalog.title)
    report.total_sections = len(catalog.sections)
    report.total_questions = catalog.total_questions

    owner_by_id: Dict[str, str] = {}
    for section in catalog.sections:
        if not section.questions:
            report.empty_sections.append(section.id)
        for question in section.questions:
            if question.id in owner_by_id:
                report.duplicate_ids.add(question.id)
            owner_by_id[question.id] = section.id

    for section in catalog.sections:
        report.sections.append(_analyze_section(section, owner_by_id))

    # =========================================================================
    # WARNING FLAGS
    # =========================================================================

    if report.total_sections == 0:
        report.add_warning("Catalog has no sections")

    if report.duplicate_ids:
        report.add_warning(
            f"Duplicate question IDs: {', '.join(sorted(report.duplicate_ids))}"
        )

    if report.empty_sections:
        report.add_warning(
            f"Empty sections: {', '.join(report.empty_sections)}"
        )

    for sec in report.sections:
        if sec.dangling_refs:
            report.add_warning(
                f"[{sec.section_id}] Unknown next targets: {', '.join(sec.dangling_refs)}"
            )
        if sec.cross_section_refs:
            report.add_warning(
                f"[{sec.section_id}] Next targets outside the section: {', '.join(sec.cross_section_refs)}"
            )
        if sec.last_question_not_terminal:
            report.add_warning(
                f"[{sec.section_id}] Last question {sec.last_question_not_terminal} does not advance the section"
            )
        if sec.unreachable_questions:
            report.add_warning(
                f"[{sec.section_id}] Unreachable questions: {', '.join(sorted(sec.unreachable_questions))}"
            )
        if sec.cycle_example:
            report.add_warning(
                f"[{sec.section_id}] Cycle detected: {' -> '.join(sec.cycle_example)}"
            )

    return report


def validate_catalog(catalog: Catalog) -> Catalog:
    """
    Load-time gate: return the catalog unchanged, or raise.

    Raises:
        CatalogIntegrityError: If analyze_catalog reports any problem
    """
    report = analyze_catalog(catalog)
    if not report.is_valid:
        logger.error("Catalog %r failed validation: %s", catalog.title, report.warnings)
        raise CatalogIntegrityError(report.warnings)
    logger.debug(
        "Catalog %r validated: %d sections, %d questions",
        catalog.title, report.total_sections, report.total_questions,
    )
    return catalog
