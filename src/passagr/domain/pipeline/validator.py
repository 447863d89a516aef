"""Schema and business-rule validation of candidate entities.

Validation never raises for bad data: every finding becomes an error or a
warning on the :class:`ValidationResult`, and the impact tier only ever moves
up (low → medium → high).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
)

from passagr.domain.model import (
    EntityType,
    Impact,
    PrepMode,
    ValidationResult,
    VisaPathType,
)

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

    from passagr.domain.model import CandidateEntity

log = getLogger(__name__)

Amount = StrictInt | StrictFloat


class CandidateSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    last_verified_at: datetime


class MoneySchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    amount: Amount | None = None
    currency: StrictStr | None = Field(default=None, min_length=3, max_length=3)


class FeeSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: StrictStr
    amount: Amount | None
    currency: StrictStr = Field(min_length=3, max_length=3)


class ProcessingTimeSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    min_days: Amount | None = None
    max_days: Amount | None = None


class CountrySchema(CandidateSchema):
    name: StrictStr = Field(min_length=1)
    iso2: StrictStr = Field(min_length=2, max_length=2)
    regions: list[StrictStr] | None = None
    languages: list[StrictStr] | None = None
    currency: StrictStr | None = Field(default=None, min_length=3, max_length=3)
    timezones: list[StrictStr] | None = None
    climate_tags: list[StrictStr] | None = None
    healthcare_overview: StrictStr | None = None
    rights_snapshot: StrictStr | None = None
    tax_snapshot: StrictStr | None = None
    lgbtq_rights_index: StrictInt = Field(ge=0, le=5)
    abortion_access_status: StrictStr = Field(min_length=1)
    hate_crime_law_snapshot: StrictStr | None = None


class VisaPathSchema(CandidateSchema):
    name: StrictStr = Field(min_length=1)
    country_id: StrictStr
    type: VisaPathType
    eligibility: list[StrictStr] | None = None
    min_income: MoneySchema | None = None
    min_savings: MoneySchema | None = None
    fees: list[FeeSchema] | None = None
    processing_time_range: ProcessingTimeSchema | None = None
    in_country_conversion_path: StrictStr | None = None


class RequirementSchema(CandidateSchema):
    visa_path_id: StrictStr
    label: StrictStr = Field(min_length=1)
    description: StrictStr | None = None
    prep_mode: PrepMode


class StepSchema(CandidateSchema):
    visa_path_id: StrictStr
    order: StrictInt = Field(ge=0)
    title: StrictStr = Field(min_length=1)
    description: StrictStr | None = None


SCHEMAS: Final[Mapping[EntityType, type[CandidateSchema]]] = {
    EntityType.COUNTRY: CountrySchema,
    EntityType.VISA_PATH: VisaPathSchema,
    EntityType.REQUIREMENT: RequirementSchema,
    EntityType.STEP: StepSchema,
}


@dataclass(slots=True)
class _Findings:
    errors: list[str] = field(default_factory=list[str])
    warnings: list[str] = field(default_factory=list[str])
    impact: Impact = Impact.LOW

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.impact = self.impact.raised_to(Impact.HIGH)

    def warning(self, message: str) -> None:
        self.warnings.append(message)
        self.impact = self.impact.raised_to(Impact.MEDIUM)

    def result(self) -> ValidationResult:
        return ValidationResult(
            valid=not self.errors,
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            impact=self.impact,
        )


def validate_candidate(candidate: CandidateEntity) -> ValidationResult:
    """Check ``candidate`` against its schema and the editorial business rules."""

    findings = _Findings()
    fields = candidate.fields

    _check_schema(candidate, findings)
    if candidate.entity_type is EntityType.VISA_PATH:
        _check_processing_time(fields, findings)
    if candidate.entity_type is EntityType.COUNTRY:
        _check_country_safety_fields(fields, findings)
    _scan_completeness(fields, findings)

    result = findings.result()
    log.info(
        "Validated %s %s: impact=%s, errors=%s, warnings=%s",
        candidate.entity_type.value,
        candidate.entity_id or "<new>",
        result.impact.value,
        len(result.errors),
        len(result.warnings),
    )
    return result


def _check_schema(candidate: CandidateEntity, findings: _Findings) -> None:
    schema = SCHEMAS.get(candidate.entity_type)
    if schema is None:
        findings.error(f"No schema found for entity type: {candidate.entity_type}")
        return
    payload = {**candidate.fields, "last_verified_at": candidate.last_verified_at}
    try:
        schema.model_validate(payload)
    except ValidationError as exc:
        for detail in exc.errors():
            findings.error(_describe_schema_error(detail))


def _describe_schema_error(detail: ErrorDetails) -> str:
    location = ".".join(str(part) for part in detail["loc"])
    if detail["type"] == "missing":
        return f"Missing required field: {location}"
    return f"Validation error: {detail['msg']} at {location or 'root'}"


def _check_processing_time(fields: Mapping[str, Any], findings: _Findings) -> None:
    time_range = fields.get("processing_time_range")
    if not isinstance(time_range, Mapping):
        return
    min_days = time_range.get("min_days")
    max_days = time_range.get("max_days")
    if not _is_number(min_days) or not _is_number(max_days):
        return
    if min_days > max_days:
        findings.error("`min_days` cannot be greater than `max_days`.")


def _check_country_safety_fields(fields: Mapping[str, Any], findings: _Findings) -> None:
    rights_index = fields.get("lgbtq_rights_index")
    if rights_index is None:
        findings.error("CRITICAL: `lgbtq_rights_index` is required for country entities.")
    elif not isinstance(rights_index, int) or isinstance(rights_index, bool):
        findings.error("CRITICAL: `lgbtq_rights_index` must be an integer between 0 and 5.")
    elif not 0 <= rights_index <= 5:  # noqa: PLR2004
        findings.error("CRITICAL: `lgbtq_rights_index` must be an integer between 0 and 5.")

    abortion_status = fields.get("abortion_access_status")
    if not isinstance(abortion_status, str) or not abortion_status.strip():
        findings.error("CRITICAL: `abortion_access_status` is required for country entities.")

    if not fields.get("hate_crime_law_snapshot"):
        findings.warning(
            "WARNING: `hate_crime_law_snapshot` is missing. "
            "This field provides important safety context."
        )


def _scan_completeness(value: Mapping[str, Any], findings: _Findings, prefix: str = "") -> None:
    for key, item in value.items():
        path = f"{prefix}{key}"
        if _is_blank(item):
            findings.warning(f"Field '{path}' is null or empty.")
        elif isinstance(item, Mapping):
            _scan_completeness(item, findings, f"{path}.")
        elif isinstance(item, list):
            for index, element in enumerate(item):
                if isinstance(element, Mapping):
                    _scan_completeness(element, findings, f"{path}.{index}.")


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str | list | tuple | dict | set):
        return len(value) == 0
    return False


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
