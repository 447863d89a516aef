from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from passagr.config import ConfigurationError, get_editorial_config, load_critical_fields
from passagr.config.editorial import parse_critical_fields


def test_packaged_critical_fields() -> None:
    fields = load_critical_fields()

    assert fields["country"] == (
        "lgbtq_rights_index",
        "abortion_access_status",
        "hate_crime_law_snapshot",
    )
    assert fields["visa_path"] == (
        "fees",
        "processing_time_range",
        "eligibility",
        "in_country_conversion_path",
    )
    assert fields["requirement"] == ("prep_mode",)
    assert fields["step"] == ()


def test_critical_fields_override_file(tmp_path: Path) -> None:
    path = tmp_path / "critical.toml"
    path.write_text('[critical_fields]\ncountry = [" iso2 ", ""]\n', encoding="utf-8")

    assert load_critical_fields(path) == {"country": ("iso2",)}


def test_missing_override_file_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_critical_fields(tmp_path / "missing.toml")


@pytest.mark.parametrize(
    "document",
    [
        {},
        {"critical_fields": ["fees"]},
        {"critical_fields": {"visa_path": "fees"}},
        {"critical_fields": {"visa_path": ["fees", 3]}},
    ],
)
def test_malformed_critical_fields_are_rejected(document: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        parse_critical_fields(document)


def test_editorial_config_from_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    path = tmp_path / "critical.toml"
    path.write_text('[critical_fields]\nstep = ["order"]\n', encoding="utf-8")
    monkeypatch.setenv("PASSAGR_CRITICAL_FIELDS_PATH", str(path))
    monkeypatch.setenv("PASSAGR_REVIEWERS", "editor-1, editor-2,,")
    monkeypatch.delenv("PASSAGR_PUBLISHER_ATTRIBUTION", raising=False)

    config = get_editorial_config()

    assert config.critical_fields == {"step": ("order",)}
    assert config.reviewers == frozenset({"editor-1", "editor-2"})
    assert config.publisher_attribution == "automated-publisher"
    assert config.source == str(path)


def test_reviewers_default_to_anyone(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PASSAGR_CRITICAL_FIELDS_PATH", raising=False)
    monkeypatch.setenv("PASSAGR_REVIEWERS", " , ")

    config = get_editorial_config()

    assert config.reviewers is None
    assert config.source == "critical_fields.toml"
