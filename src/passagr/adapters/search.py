"""Typesense-style search index adapter."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING, Any

from passagr.adapters.http_resilience import ResilientClient
from passagr.config import SearchConfig, get_search_config
from passagr.domain.model import EntityStatus, EntityType

if TYPE_CHECKING:
    from collections.abc import Callable

    from passagr.config import ResilienceConfig
    from passagr.domain.model import PublishedEntity
    from passagr.domain.pipeline.context import UnitOfWorkFactory

log = getLogger(__name__)


class SearchIndexError(RuntimeError):
    """Raised when the search engine rejects an upsert or delete."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _strings(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def transform_document(
    entity: PublishedEntity, *, country_name: str | None = None
) -> dict[str, Any]:
    """Flatten a published entity into an indexable search document."""

    data = entity.fields
    verified = entity.last_verified_at
    document: dict[str, Any] = {
        "id": entity.id,
        "last_verified_at": int(verified.timestamp() * 1000) if verified else 0,
        "name": _text(data.get("name") or data.get("label") or data.get("title")),
        "tags": [],
    }

    if entity.entity_type is EntityType.COUNTRY:
        document.update(
            iso2=_text(data.get("iso2")),
            regions=_strings(data.get("regions")),
            languages=_strings(data.get("languages")),
            currency=_text(data.get("currency")),
            climate_tags=_strings(data.get("climate_tags")),
            content=" ".join(
                _text(data.get(key))
                for key in ("healthcare_overview", "rights_snapshot", "tax_snapshot")
            ).strip(),
        )
        return document

    if entity.entity_type is EntityType.VISA_PATH:
        eligibility = _strings(data.get("eligibility"))
        fees = data.get("fees") if isinstance(data.get("fees"), list) else []
        fees_summary = ", ".join(
            f"{fee.get('amount')} {fee.get('currency')}" for fee in fees if isinstance(fee, dict)
        )
        min_income = data.get("min_income") if isinstance(data.get("min_income"), dict) else {}
        resolved_country = country_name or "Unknown"
        visa_type = _text(data.get("type"))
        document.update(
            country_id=_text(data.get("country_id")),
            country_name=resolved_country,
            type=visa_type,
            description=_text(data.get("description")),
            work_rights=_text(data.get("work_rights")),
            dependents_rules=_text(data.get("dependents_rules")),
            renewal_rules=_text(data.get("renewal_rules")),
            to_pr_citizenship_timeline=_text(data.get("to_pr_citizenship_timeline")),
            min_income_amount=min_income.get("amount"),
            min_income_currency=min_income.get("currency"),
            content=" ".join(
                part
                for part in (
                    _text(data.get("description")),
                    "; ".join(eligibility),
                    _text(data.get("work_rights")),
                    _text(data.get("dependents_rules")),
                    fees_summary,
                )
                if part
            ),
            eligibility_terms=eligibility,
            tags=[tag for tag in (visa_type, resolved_country) if tag],
        )
        return document

    document.update(
        visa_path_id=_text(data.get("visa_path_id")),
        content=_text(data.get("description")),
    )
    if entity.entity_type is EntityType.STEP:
        document["order"] = data.get("order")
    else:
        document["prep_mode"] = _text(data.get("prep_mode"))
    return document


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpSearchIndexer:
    """Upserts published entities into per-type collections; deletes the rest.

    Both operations are idempotent: re-syncing an unchanged entity rewrites
    the same document and deleting a missing document is not an error.
    """

    unit_of_work_factory: UnitOfWorkFactory
    config: SearchConfig = field(default_factory=get_search_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def sync(self, entity_type: EntityType, entity_id: str) -> None:
        entity, country_name = self._load(entity_type, entity_id)
        if entity is None or entity.status is not EntityStatus.PUBLISHED:
            log.warning(
                "%s %s not found or not published; removing it from the index",
                entity_type.value,
                entity_id,
            )
            self.delete(entity_type, entity_id)
            return
        document = transform_document(entity, country_name=country_name)
        asyncio.run(self._upsert(entity_type, document))
        log.info("Indexed %s %s", entity_type.value, entity_id)

    def delete(self, entity_type: EntityType, entity_id: str) -> None:
        asyncio.run(self._delete(entity_type, entity_id))

    def _load(
        self, entity_type: EntityType, entity_id: str
    ) -> tuple[PublishedEntity | None, str | None]:
        with self.unit_of_work_factory() as uow:
            entity = uow.repositories.entities.get(entity_type, entity_id)
            country_name = None
            if entity is not None and entity_type is EntityType.VISA_PATH:
                country_id = entity.fields.get("country_id")
                if isinstance(country_id, str):
                    country = uow.repositories.entities.get(EntityType.COUNTRY, country_id)
                    country_name = country.name if country is not None else None
        return entity, country_name

    async def _upsert(self, entity_type: EntityType, document: dict[str, Any]) -> None:
        async with self.client_factory(self.config.resilience) as client:
            response = await client.post(
                f"collections/{entity_type.plural}/documents",
                params={"action": "upsert"},
                json=document,
            )
        if response.is_error:
            raise SearchIndexError(
                f"Search upsert failed for {entity_type.plural}/{document['id']}: "
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

    async def _delete(self, entity_type: EntityType, entity_id: str) -> None:
        async with self.client_factory(self.config.resilience) as client:
            response = await client.delete(f"collections/{entity_type.plural}/documents/{entity_id}")
        if response.status_code == HTTPStatus.NOT_FOUND:
            log.debug("%s %s was not indexed", entity_type.value, entity_id)
            return
        if response.is_error:
            raise SearchIndexError(
                f"Search delete failed for {entity_type.plural}/{entity_id}: "
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
