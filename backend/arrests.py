"""Arrest Map Backend — Arrest Records

One document per canonical region in the arrests collection:

    {region, arrestCount, firCount, updatedAt, updatedBy}

Every mutation checks, in order: input, service availability, sign-in, admin
identity. Nothing touches the network until the input has been validated.
"""

import logging
from typing import Any, Optional

from aggregation import apply_additive, build_raw_view
from auth import IdentityProvider, User, require_admin
from config import ARRESTS_COLLECTION
from errors import NetworkFailure, ServiceUnavailable, ValidationError
from store import SERVER_TIMESTAMP, DocumentStore
from validation import validate_batch, validate_update
from regions import canonicalize

logger = logging.getLogger("arrestmap.arrests")


def _count(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value) if value >= 0 else None


def record_from_document(doc_id: str, fields: dict) -> Optional[tuple[str, int, int]]:
    """(region, arrests, fir) from a stored document, or None if unusable.

    Documents written before FIR counts existed carry {state, count}; those
    load as arrests with no FIRs.
    """
    region = fields.get("region") or fields.get("state") or doc_id
    arrests = _count(fields.get("arrestCount", fields.get("count")))
    fir = _count(fields.get("firCount", 0))
    if arrests is None or fir is None:
        logger.warning(f"Ignoring malformed arrest document {doc_id!r}")
        return None
    return region, arrests, fir


def build_document(region: str, arrests: int, fir: int, user: User) -> dict:
    return {
        "region": region,
        "arrestCount": arrests,
        "firCount": fir,
        "updatedAt": SERVER_TIMESTAMP,
        "updatedBy": user.email,
    }


class ArrestRecords:
    def __init__(self, store: Optional[DocumentStore], identity: Optional[IdentityProvider],
                 collection: str = ARRESTS_COLLECTION):
        self.store = store
        self.identity = identity
        self.collection = collection

    def _require_services(self):
        if self.store is None or self.identity is None:
            raise ServiceUnavailable()

    # ── reads ──

    async def load_records(self, id_token: Optional[str] = None) -> list[tuple[str, int, int]]:
        if self.store is None:
            raise ServiceUnavailable()
        documents = await self.store.list_documents(self.collection, auth_token=id_token)
        records = []
        for doc_id, fields in documents:
            record = record_from_document(doc_id, fields)
            if record is not None:
                records.append(record)
        return records

    async def load_raw_view(self, id_token: Optional[str] = None) -> dict[str, dict[str, int]]:
        return build_raw_view(await self.load_records(id_token))

    # ── writes ──

    async def _commit(self, writes: list, id_token: Optional[str], failure_message: str):
        try:
            await self.store.commit_batch(self.collection, writes, auth_token=id_token)
        except NetworkFailure as e:
            raise NetworkFailure(failure_message) from e

    async def update(self, region: Any, arrests: Any, fir: Any = 0,
                     id_token: Optional[str] = None, additive: bool = False) -> str:
        """Set (or add to) one region's counts. Returns the canonical key."""
        key, arrest_count, fir_count = validate_update(region, arrests, fir)
        self._require_services()
        user = await require_admin(self.identity, id_token)

        if additive:
            try:
                existing = await self.store.get_document(self.collection, key, auth_token=id_token)
            except NetworkFailure as e:
                raise NetworkFailure("Failed to update data") from e
            if existing:
                record = record_from_document(key, existing)
                if record is not None:
                    _, current_arrests, current_fir = record
                    arrest_count = apply_additive(current_arrests, arrest_count, "arrests", key)
                    fir_count = apply_additive(current_fir, fir_count, "fir", key)

        await self._commit(
            [(key, build_document(key, arrest_count, fir_count, user))],
            id_token,
            "Failed to update data",
        )
        logger.info(f"Updated {key}: arrests={arrest_count} fir={fir_count} (additive={additive})")
        return key

    async def delete(self, region: Any, id_token: Optional[str] = None) -> str:
        key = canonicalize(region)
        if key is None:
            raise ValidationError("Invalid state name", field="region")
        self._require_services()
        await require_admin(self.identity, id_token)

        await self._commit([(key, None)], id_token, "Failed to delete data")
        logger.info(f"Deleted arrest record for {key}")
        return key

    async def batch_update(self, updates: Any, id_token: Optional[str] = None,
                           additive: bool = False) -> list[str]:
        """Apply up to MAX_BATCH_UPDATES updates atomically. Returns the keys written."""
        validated = validate_batch(updates)
        self._require_services()
        user = await require_admin(self.identity, id_token)

        # Same region twice in one batch: summed when additive, last one wins otherwise
        merged: dict[str, list[int]] = {}
        for key, arrest_count, fir_count in validated:
            if additive and key in merged:
                merged[key][0] += arrest_count
                merged[key][1] += fir_count
            else:
                merged[key] = [arrest_count, fir_count]

        if additive:
            try:
                current = await self.load_raw_view(id_token)
            except NetworkFailure as e:
                raise NetworkFailure("Failed to update data") from e
            for key, counts in merged.items():
                existing = current.get(key, {"arrests": 0, "fir": 0})
                counts[0] = apply_additive(existing["arrests"], counts[0], "arrests", key)
                counts[1] = apply_additive(existing["fir"], counts[1], "fir", key)

        writes = [
            (key, build_document(key, counts[0], counts[1], user))
            for key, counts in merged.items()
        ]
        await self._commit(writes, id_token, "Failed to update data")
        logger.info(f"Batch updated {len(writes)} regions (additive={additive})")
        return list(merged)
