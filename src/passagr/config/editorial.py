"""Editorial workflow configuration: critical fields and reviewer access."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .env import optional_env_var
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

CRITICAL_FIELDS_RESOURCE: Final[str] = "critical_fields.toml"
DEFAULT_PUBLISHER_ATTRIBUTION: Final[str] = "automated-publisher"


@dataclass(frozen=True, slots=True)
class EditorialConfig:
    critical_fields: Mapping[str, tuple[str, ...]]
    reviewers: frozenset[str] | None = None
    publisher_attribution: str = DEFAULT_PUBLISHER_ATTRIBUTION
    source: str = field(default=CRITICAL_FIELDS_RESOURCE)


def parse_critical_fields(document: Mapping[str, object]) -> dict[str, tuple[str, ...]]:
    """Validate the ``[critical_fields]`` table of a parsed TOML document."""

    section = document.get("critical_fields")
    if not isinstance(section, dict):
        raise ConfigurationError("Critical field config must contain a [critical_fields] table")

    parsed: dict[str, tuple[str, ...]] = {}
    for entity_type, paths in section.items():
        if not isinstance(paths, list) or not all(isinstance(path, str) for path in paths):
            raise ConfigurationError(
                f"Critical fields for {entity_type!r} must be a list of dotted paths"
            )
        cleaned = tuple(path.strip() for path in paths if path.strip())
        parsed[str(entity_type)] = cleaned
    return parsed


def load_critical_fields(path: Path | None = None) -> dict[str, tuple[str, ...]]:
    """Load the critical-field set from ``path`` or the packaged default."""

    if path is not None:
        try:
            with path.open("rb") as handle:
                document = tomllib.load(handle)
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Critical field config not found: {path}") from exc
    else:
        resource = resources.files(__package__).joinpath(CRITICAL_FIELDS_RESOURCE)
        document = tomllib.loads(resource.read_text(encoding="utf-8"))
    return parse_critical_fields(document)


def _parse_reviewers(raw: str | None) -> frozenset[str] | None:
    if raw is None:
        return None
    reviewers = frozenset(part.strip() for part in raw.split(",") if part.strip())
    return reviewers or None


def get_editorial_config() -> EditorialConfig:
    override = optional_env_var("PASSAGR_CRITICAL_FIELDS_PATH")
    path = Path(override).expanduser() if override else None
    return EditorialConfig(
        critical_fields=load_critical_fields(path),
        reviewers=_parse_reviewers(optional_env_var("PASSAGR_REVIEWERS")),
        publisher_attribution=optional_env_var(
            "PASSAGR_PUBLISHER_ATTRIBUTION", DEFAULT_PUBLISHER_ATTRIBUTION
        )
        or DEFAULT_PUBLISHER_ATTRIBUTION,
        source=str(path) if path else CRITICAL_FIELDS_RESOURCE,
    )
