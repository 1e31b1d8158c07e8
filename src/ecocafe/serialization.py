"""
Serialization helpers for catalogs and persistence records.

Catalogs get a lossless JSON/YAML round-trip through an intermediate dict
representation. Result and report records are rendered one way, to the
plain dict layout handed to the store. This module intentionally keeps the
serialized structure stable and explicit.
"""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict

import yaml

from ecocafe.grading import Grade
from ecocafe.location import Coordinates, ExternalSelection
from ecocafe.model import Catalog, Question, Section, next_ref_to_str, parse_next_ref

if TYPE_CHECKING:
    from ecocafe.persistence import ReportRecord, SurveyResultRecord


class CatalogFormatError(ValueError):
    """Raised when a catalog document is missing required fields."""
    pass


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {"id": q.id, "title": q.title, "next": next_ref_to_str(q.next)}


def question_from_dict(d: Dict[str, Any]) -> Question:
    try:
        return Question(id=d["id"], title=d.get("title", ""), next=parse_next_ref(d["next"]))
    except (KeyError, TypeError, AttributeError) as e:
        raise CatalogFormatError(f"Invalid question entry {d!r}: {e}")


def section_to_dict(s: Section) -> Dict[str, Any]:
    return {
        "id": s.id,
        "title": s.title,
        "questions": [question_to_dict(q) for q in s.questions],
    }


def section_from_dict(d: Dict[str, Any]) -> Section:
    try:
        section_id = d["id"]
    except (KeyError, TypeError) as e:
        raise CatalogFormatError(f"Invalid section entry {d!r}: {e}")
    return Section(
        id=section_id,
        title=d.get("title", ""),
        questions=tuple(question_from_dict(q) for q in d.get("questions", [])),
    )


def catalog_to_dict(c: Catalog) -> Dict[str, Any]:
    return {
        "title": c.title,
        "sections": [section_to_dict(s) for s in c.sections],
    }


def catalog_from_dict(d: Dict[str, Any]) -> Catalog:
    if not isinstance(d, dict):
        raise CatalogFormatError(f"Catalog document must be a mapping, got {type(d).__name__}")
    return Catalog(
        title=d.get("title", ""),
        sections=tuple(section_from_dict(s) for s in d.get("sections", [])),
    )


def catalog_to_json(c: Catalog) -> str:
    return json.dumps(catalog_to_dict(c), sort_keys=True, ensure_ascii=False)


def catalog_from_json(s: str) -> Catalog:
    d = json.loads(s)
    return catalog_from_dict(d)


def catalog_to_yaml(c: Catalog) -> str:
    return yaml.safe_dump(catalog_to_dict(c), allow_unicode=True, sort_keys=False)


def catalog_from_yaml(s: str) -> Catalog:
    d = yaml.safe_load(s)
    return catalog_from_dict(d)


def load_catalog_file(path: str) -> Catalog:
    """
    Read a catalog from a .yaml/.yml or .json file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        CatalogFormatError: If the document is malformed
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    if path.endswith(".json"):
        return catalog_from_json(content)
    return catalog_from_yaml(content)


# =============================================================================
# Persistence records (one-way)
# =============================================================================


def coordinates_to_dict(c: Coordinates | None) -> Dict[str, float] | None:
    if c is None:
        return None
    return {"lat": c.lat, "lng": c.lng}


def selection_to_dict(s: ExternalSelection | None) -> Dict[str, Any] | None:
    if s is None:
        return None
    return {
        "id": s.id,
        "name": s.name,
        "lat": s.lat,
        "lng": s.lng,
        "address": s.address,
        "stars": s.stars,
    }


def grade_to_dict(g: Grade) -> Dict[str, Any]:
    return {
        "name": g.name,
        "icon": g.icon,
        "stars": g.stars,
        "message": g.message,
        "percent": g.percent,
    }


def result_record_to_dict(r: SurveyResultRecord) -> Dict[str, Any]:
    return {
        "cafeName": r.subject_name,
        "cafeAddress": r.subject_address,
        "gpsEnabled": r.gps_enabled,
        "location": coordinates_to_dict(r.coordinates),
        "answers": dict(r.raw_answers),
        "answersBool": dict(r.normalized_answers),
        "grade": grade_to_dict(r.grade),
        "selectedCafe": selection_to_dict(r.external_selection),
        "createdAt": r.timestamp.isoformat(),
    }


def report_record_to_dict(r: ReportRecord) -> Dict[str, Any]:
    return {
        "context": r.context_tag,
        "contextLabel": r.context_label,
        "message": r.message,
        "selectedCafe": selection_to_dict(r.external_selection),
        "createdAt": r.timestamp.isoformat(),
    }
