"""Arrest Map Backend — Media Links

News articles and videos attached to a region. Stored one document per item:

    {region, url, title, kind: "article"|"video", createdAt, createdBy}
"""

import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

from auth import IdentityProvider, require_admin
from config import MAX_TITLE_LENGTH, MEDIA_COLLECTION
from errors import NetworkFailure, ServiceUnavailable, ValidationError
from regions import canonicalize
from store import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger("arrestmap.media")

MEDIA_KINDS = ("article", "video")
_ANGLE_RE = re.compile(r"[<>]")


def clean_title(title: str) -> str:
    return _ANGLE_RE.sub("", title).strip()[:MAX_TITLE_LENGTH]


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class MediaLibrary:
    def __init__(self, store: Optional[DocumentStore], identity: Optional[IdentityProvider],
                 collection: str = MEDIA_COLLECTION):
        self.store = store
        self.identity = identity
        self.collection = collection

    async def load(self) -> dict[str, list[dict]]:
        """Media grouped by canonical region, newest first."""
        if self.store is None:
            raise ServiceUnavailable()
        documents = await self.store.list_documents(self.collection)

        grouped: dict[str, list[dict]] = {}
        for doc_id, fields in documents:
            region = canonicalize(fields.get("region") or fields.get("state"))
            url = fields.get("url") or fields.get("link")
            title = fields.get("title")
            if region is None or not url or not title:
                continue
            grouped.setdefault(region, []).append({
                "id": doc_id,
                "url": url,
                "title": title,
                "kind": fields.get("kind") or fields.get("type") or "article",
                "createdAt": fields.get("createdAt"),
            })

        for items in grouped.values():
            items.sort(key=lambda item: str(item["createdAt"] or ""), reverse=True)
        return grouped

    async def add(self, region: Any, url: Any, title: Any, kind: Any = "article",
                  id_token: Optional[str] = None) -> str:
        if not region or not url or not title:
            raise ValidationError("Missing required fields")
        key = canonicalize(region)
        if key is None:
            raise ValidationError("Invalid state name", field="region")
        if not isinstance(url, str) or not is_valid_url(url):
            raise ValidationError("Invalid link", field="url")
        cleaned_title = clean_title(title) if isinstance(title, str) else ""
        if not cleaned_title:
            raise ValidationError("Invalid title", field="title")
        media_kind = kind if kind in MEDIA_KINDS else "article"

        if self.store is None or self.identity is None:
            raise ServiceUnavailable()
        user = await require_admin(self.identity, id_token)

        fields = {
            "region": key,
            "url": url.strip(),
            "title": cleaned_title,
            "kind": media_kind,
            "createdAt": SERVER_TIMESTAMP,
            "createdBy": user.email,
        }
        try:
            media_id = await self.store.add_document(self.collection, fields, auth_token=id_token)
        except NetworkFailure as e:
            raise NetworkFailure("Failed to add media") from e
        logger.info(f"Added {media_kind} for {key}: {media_id}")
        return media_id

    async def delete(self, media_id: Any, id_token: Optional[str] = None):
        if not media_id or not isinstance(media_id, str) or "/" in media_id:
            raise ValidationError("Invalid media ID", field="id")
        if self.store is None or self.identity is None:
            raise ServiceUnavailable()
        await require_admin(self.identity, id_token)

        try:
            await self.store.delete_document(self.collection, media_id, auth_token=id_token)
        except NetworkFailure as e:
            raise NetworkFailure("Failed to delete media") from e
        logger.info(f"Deleted media {media_id}")
