from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from passagr.adapters.sqlalchemy.repositories import (
    SqlAlchemyChangelogRepository,
    SqlAlchemyEntityRepository,
    SqlAlchemyFreshnessPolicyRepository,
    SqlAlchemyReviewRepository,
    SqlAlchemySourceRepository,
)
from passagr.domain.errors import ReviewAlreadyResolved, VersionConflict
from passagr.domain.model import (
    ChangelogEntry,
    ChangeType,
    Criticality,
    DiffField,
    DiffKind,
    EditorialReview,
    EntityType,
    Impact,
    ReviewStatus,
)
from tests.helpers.entities import VERIFIED_AT, country_fields, make_source, visa_path_fields

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_insert_and_get_entity_round_trip(sqlite_session: Session) -> None:
    repo = SqlAlchemyEntityRepository(sqlite_session)

    repo.insert(EntityType.VISA_PATH, "visa-d7", visa_path_fields(), verified_at=VERIFIED_AT)
    sqlite_session.commit()

    entity = repo.get(EntityType.VISA_PATH, "visa-d7")
    assert entity is not None
    assert entity.version == 1
    assert entity.fields == visa_path_fields()
    assert entity.name == "D7 Passive Income Visa"
    assert entity.last_verified_at == VERIFIED_AT
    assert entity.last_verified_at.tzinfo is not None
    assert repo.get(EntityType.COUNTRY, "visa-d7") is None


def test_insert_existing_entity_conflicts(sqlite_session: Session) -> None:
    repo = SqlAlchemyEntityRepository(sqlite_session)
    repo.insert(EntityType.COUNTRY, "123", country_fields(), verified_at=VERIFIED_AT)

    with pytest.raises(VersionConflict) as exc:
        repo.insert(EntityType.COUNTRY, "123", country_fields(), verified_at=VERIFIED_AT)

    assert exc.value.actual_version == 1


def test_update_checks_expected_version(sqlite_session: Session) -> None:
    repo = SqlAlchemyEntityRepository(sqlite_session)
    repo.insert(EntityType.COUNTRY, "123", country_fields(), verified_at=VERIFIED_AT)
    later = VERIFIED_AT + timedelta(days=1)

    updated = repo.update(
        EntityType.COUNTRY,
        "123",
        country_fields(lgbtq_rights_index=4),
        expected_version=1,
        verified_at=later,
    )

    assert updated.version == 2
    assert updated.fields["lgbtq_rights_index"] == 4
    assert updated.last_verified_at == later
    with pytest.raises(VersionConflict) as exc:
        repo.update(
            EntityType.COUNTRY, "123", country_fields(), expected_version=1, verified_at=later
        )
    assert exc.value.actual_version == 2


def test_list_by_type_returns_published_entities(sqlite_session: Session) -> None:
    repo = SqlAlchemyEntityRepository(sqlite_session)
    repo.insert(EntityType.COUNTRY, "pt", country_fields(), verified_at=VERIFIED_AT)
    repo.insert(EntityType.COUNTRY, "es", country_fields(name="Spain"), verified_at=VERIFIED_AT)
    repo.insert(EntityType.VISA_PATH, "d7", visa_path_fields(), verified_at=VERIFIED_AT)

    countries = repo.list_by_type(EntityType.COUNTRY)

    assert {entity.id for entity in countries} == {"pt", "es"}


def test_changelog_entries_keep_diff_fields(sqlite_session: Session) -> None:
    repo = SqlAlchemyChangelogRepository(sqlite_session)
    entry = ChangelogEntry(
        entity_type=EntityType.COUNTRY,
        entity_id="123",
        change_type=ChangeType.UPDATE,
        diff_summary="Changes detected for country: 1 fields modified.",
        diff_fields=[DiffField("lgbtq_rights_index", 5, 4, DiffKind.CHANGED)],
        created_by="editor-1",
        source_ids=["source-1"],
        snapshot=country_fields(lgbtq_rights_index=4),
        version=2,
        created_at=VERIFIED_AT,
    )
    repo.append(entry)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    [loaded] = repo.list_for_entity(EntityType.COUNTRY, "123")

    assert loaded.id == entry.id
    assert loaded.diff_fields == [DiffField("lgbtq_rights_index", 5, 4, DiffKind.CHANGED)]
    assert loaded.change_type is ChangeType.UPDATE
    assert loaded.snapshot["lgbtq_rights_index"] == 4
    assert repo.list_for_entity(EntityType.VISA_PATH, "123") == []


def test_reviews_persist_and_resolve(sqlite_session: Session) -> None:
    repo = SqlAlchemyReviewRepository(sqlite_session)
    review = EditorialReview(
        entity_type=EntityType.COUNTRY,
        entity_id="123",
        reason="Critical safety field change.",
        proposed_data={"entity_type": "country", "lgbtq_rights_index": 4},
        change_type=ChangeType.UPDATE,
        diff_summary="Changes detected for country: 1 fields modified.",
        diff_fields=[DiffField("lgbtq_rights_index", 5, 4)],
        base_version=1,
        impact=Impact.MEDIUM,
    )
    repo.add(review)
    sqlite_session.commit()

    assert [item.id for item in repo.list_by_status(ReviewStatus.PENDING)] == [review.id]

    review.approve(reviewer_uid="editor-1", notes="ok")
    repo.resolve(review)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = repo.get(review.id)
    assert loaded is not None
    assert loaded.status is ReviewStatus.APPROVED
    assert loaded.reviewer_uid == "editor-1"
    assert loaded.impact is Impact.MEDIUM
    assert loaded.resolved_at is not None
    assert repo.list_by_status(ReviewStatus.PENDING) == []


def test_resolving_a_resolved_review_is_refused(sqlite_session: Session) -> None:
    repo = SqlAlchemyReviewRepository(sqlite_session)
    review = EditorialReview(
        entity_type=EntityType.COUNTRY,
        entity_id="123",
        reason="Critical safety field change.",
        change_type=ChangeType.UPDATE,
        diff_summary="Changes detected for country: 1 fields modified.",
    )
    repo.add(review)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    first = repo.get(review.id)
    assert first is not None
    sqlite_session.expunge(first)
    second = repo.get(review.id)
    assert second is not None
    sqlite_session.expunge(second)

    first.reject(reviewer_uid="editor-1")
    repo.resolve(first)
    sqlite_session.commit()

    second.approve(reviewer_uid="editor-2")
    with pytest.raises(ReviewAlreadyResolved):
        repo.resolve(second)
    sqlite_session.rollback()
    sqlite_session.expunge_all()

    loaded = repo.get(review.id)
    assert loaded is not None
    assert loaded.status is ReviewStatus.REJECTED
    assert loaded.reviewer_uid == "editor-1"


def test_sources_are_ordered_for_link_checks(sqlite_session: Session) -> None:
    repo = SqlAlchemySourceRepository(sqlite_session)
    checked_at = datetime(2025, 5, 1, tzinfo=UTC)
    repo.add(make_source("checked", last_checked_at=checked_at))
    repo.add(make_source("unchecked"))
    sqlite_session.commit()

    due = repo.list_for_link_check(limit=10)

    assert [source.id for source in due] == ["unchecked", "checked"]

    repo.record_check("unchecked", reliability_score=7, checked_at=checked_at + timedelta(days=1))
    sqlite_session.commit()
    sqlite_session.expunge_all()

    source = repo.get("unchecked")
    assert source is not None
    assert source.reliability_score == 7
    assert source.last_checked_at == checked_at + timedelta(days=1)


def test_seeded_freshness_policies(sqlite_session: Session) -> None:
    policies = SqlAlchemyFreshnessPolicyRepository(sqlite_session).list_all()

    by_key = {policy.key: policy for policy in policies}
    assert set(by_key) == {
        "abortion_access_status",
        "fees",
        "hate_crime_law_snapshot",
        "lgbtq_rights_index",
    }
    assert by_key["abortion_access_status"].criticality is Criticality.CRITICAL
    assert by_key["abortion_access_status"].ttl_days == 30
