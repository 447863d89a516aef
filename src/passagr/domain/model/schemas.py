"""Per-type field skeletons for candidate entities.

A skeleton lists every field an extracted entity may carry together with its
"unresolved" value. Extraction fills in only what the source text supports;
everything else keeps the skeleton default (``None`` or an empty collection).
"""

from __future__ import annotations

import copy
from typing import Any, Final

from .enums import EntityType

COUNTRY_SKELETON: Final[dict[str, Any]] = {
    "name": None,
    "iso2": None,
    "regions": [],
    "languages": [],
    "currency": None,
    "timezones": [],
    "climate_tags": [],
    "healthcare_overview": None,
    "rights_snapshot": None,
    "tax_snapshot": None,
    "lgbtq_rights_index": None,
    "abortion_access_status": None,
    "hate_crime_law_snapshot": None,
    "notes": [],
}

VISA_PATH_SKELETON: Final[dict[str, Any]] = {
    "country_id": None,
    "name": None,
    "type": None,
    "description": None,
    "eligibility": [],
    "work_rights": None,
    "dependents_rules": None,
    "min_income": {"amount": None, "currency": None},
    "min_savings": {"amount": None, "currency": None},
    "fees": [],
    "processing_time_range": {"min_days": None, "max_days": None},
    "renewal_rules": None,
    "to_pr_citizenship_timeline": None,
    "in_country_conversion_path": None,
    "notes": [],
}

REQUIREMENT_SKELETON: Final[dict[str, Any]] = {
    "visa_path_id": None,
    "label": None,
    "description": None,
    "prep_mode": None,
}

STEP_SKELETON: Final[dict[str, Any]] = {
    "visa_path_id": None,
    "order": None,
    "title": None,
    "description": None,
}

_SKELETONS: Final[dict[EntityType, dict[str, Any]]] = {
    EntityType.COUNTRY: COUNTRY_SKELETON,
    EntityType.VISA_PATH: VISA_PATH_SKELETON,
    EntityType.REQUIREMENT: REQUIREMENT_SKELETON,
    EntityType.STEP: STEP_SKELETON,
}


def skeleton_for(entity_type: EntityType) -> dict[str, Any]:
    """Return a fresh copy of the skeleton for ``entity_type``."""

    return copy.deepcopy(_SKELETONS[entity_type])
