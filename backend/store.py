"""Arrest Map Backend — Document Store

Two implementations of the same small interface:
  FirestoreRestStore  Cloud Firestore v1 REST API over httpx. Every write goes
                      through the atomic `:commit` endpoint.
  MemoryDocumentStore in-process dict, for tests and offline runs.

Only single-collection reads, keyed set/delete and atomic batch set are used;
no queries, indexes or transactions.
"""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx

from errors import NetworkFailure, NotAuthenticated, PermissionDenied

logger = logging.getLogger("arrestmap.store")


class _ServerTimestamp:
    """Placeholder replaced by the store's own clock at write time."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class DocumentStore:
    """Interface. `auth_token` is the signed-in user's ID token, if any."""

    async def list_documents(self, collection: str, auth_token: Optional[str] = None) -> list[tuple[str, dict]]:
        raise NotImplementedError

    async def get_document(self, collection: str, doc_id: str, auth_token: Optional[str] = None) -> Optional[dict]:
        raise NotImplementedError

    async def commit_batch(
        self,
        collection: str,
        writes: list[tuple[str, Optional[dict]]],
        auth_token: Optional[str] = None,
    ):
        """Apply all writes or none. A `None` field dict deletes that document."""
        raise NotImplementedError

    async def set_document(self, collection: str, doc_id: str, fields: dict, auth_token: Optional[str] = None):
        await self.commit_batch(collection, [(doc_id, fields)], auth_token=auth_token)

    async def delete_document(self, collection: str, doc_id: str, auth_token: Optional[str] = None):
        await self.commit_batch(collection, [(doc_id, None)], auth_token=auth_token)

    async def add_document(self, collection: str, fields: dict, auth_token: Optional[str] = None) -> str:
        doc_id = uuid.uuid4().hex[:20]
        await self.set_document(collection, doc_id, fields, auth_token=auth_token)
        return doc_id


# ─────────────────────────── In-memory ──────────────────────────

class MemoryDocumentStore(DocumentStore):
    def __init__(self, collections: Optional[dict[str, dict[str, dict]]] = None):
        self._collections: dict[str, dict[str, dict]] = copy.deepcopy(collections or {})
        self.operations: list[str] = []  # one entry per call, oldest first

    async def list_documents(self, collection, auth_token=None):
        self.operations.append(f"list:{collection}")
        docs = self._collections.get(collection, {})
        return [(doc_id, copy.deepcopy(fields)) for doc_id, fields in docs.items()]

    async def get_document(self, collection, doc_id, auth_token=None):
        self.operations.append(f"get:{collection}/{doc_id}")
        fields = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(fields) if fields is not None else None

    async def commit_batch(self, collection, writes, auth_token=None):
        self.operations.append(f"commit:{collection}:{len(writes)}")
        now = _utc_now_iso()
        staged = dict(self._collections.get(collection, {}))
        for doc_id, fields in writes:
            if fields is None:
                staged.pop(doc_id, None)
                continue
            staged[doc_id] = {
                k: (now if v is SERVER_TIMESTAMP else copy.deepcopy(v))
                for k, v in fields.items()
            }
        self._collections[collection] = staged


# ─────────────────────────── Firestore REST ─────────────────────

def encode_value(value: Any) -> dict:
    if value is None:
        return {"nullValue": None}
    if value is SERVER_TIMESTAMP:
        raise ValueError("SERVER_TIMESTAMP must be sent as a field transform")
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": {k: encode_value(v) for k, v in value.items()}}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Unsupported Firestore value type: {type(value).__name__}")


def decode_value(value: dict) -> Any:
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "mapValue" in value:
        return {k: decode_value(v) for k, v in value["mapValue"].get("fields", {}).items()}
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    return None


def decode_fields(fields: dict) -> dict:
    return {k: decode_value(v) for k, v in (fields or {}).items()}


class FirestoreRestStore(DocumentStore):
    PAGE_SIZE = 300

    def __init__(self, project_id: str, api_key: str = "", base_url: str = "https://firestore.googleapis.com/v1",
                 client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0):
        self._database = f"projects/{project_id}/databases/(default)/documents"
        self._base = f"{base_url.rstrip('/')}/{self._database}"
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _doc_name(self, collection: str, doc_id: str) -> str:
        return f"{self._database}/{collection}/{doc_id}"

    def _request_kwargs(self, auth_token: Optional[str]) -> dict:
        kwargs: dict = {"params": {"key": self._api_key} if self._api_key else {}}
        if auth_token:
            kwargs["headers"] = {"Authorization": f"Bearer {auth_token}"}
        return kwargs

    @staticmethod
    def _check(response: httpx.Response, action: str):
        if response.status_code < 400:
            return
        logger.warning(f"Firestore {action} failed: HTTP {response.status_code} {response.text[:200]}")
        if response.status_code == 401:
            raise NotAuthenticated()
        if response.status_code == 403:
            raise PermissionDenied()
        raise NetworkFailure()

    @classmethod
    def _body(cls, response: httpx.Response, action: str) -> dict:
        cls._check(response, action)
        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Firestore {action} returned a non-JSON body: {response.text[:200]}")
            raise NetworkFailure() from e
        if not isinstance(data, dict):
            logger.warning(f"Firestore {action} returned {type(data).__name__}, expected an object")
            raise NetworkFailure()
        return data

    async def _send(self, method: str, url: str, action: str, auth_token: Optional[str], **kwargs) -> httpx.Response:
        request_kwargs = self._request_kwargs(auth_token)
        if "params" in kwargs:
            request_kwargs["params"] = {**request_kwargs["params"], **kwargs.pop("params")}
        try:
            return await self._client.request(method, url, **request_kwargs, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Firestore {action} error: {e}")
            raise NetworkFailure() from e

    async def list_documents(self, collection, auth_token=None):
        url = f"{self._base}/{quote(collection, safe='')}"
        documents: list[tuple[str, dict]] = []
        page_token = None
        while True:
            params = {"pageSize": self.PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            r = await self._send("GET", url, "list", auth_token, params=params)
            data = self._body(r, "list")
            for doc in data.get("documents") or []:
                name = doc.get("name") if isinstance(doc, dict) else None
                if not isinstance(name, str):
                    logger.warning(f"Skipping unnamed document in '{collection}'")
                    continue
                doc_id = name.rsplit("/", 1)[-1]
                documents.append((doc_id, decode_fields(doc.get("fields", {}))))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        logger.info(f"Loaded {len(documents)} documents from '{collection}'")
        return documents

    async def get_document(self, collection, doc_id, auth_token=None):
        url = f"{self._base}/{quote(collection, safe='')}/{quote(doc_id, safe='')}"
        r = await self._send("GET", url, "get", auth_token)
        if r.status_code == 404:
            return None
        return decode_fields(self._body(r, "get").get("fields", {}))

    def _write(self, collection: str, doc_id: str, fields: Optional[dict]) -> dict:
        name = self._doc_name(collection, doc_id)
        if fields is None:
            return {"delete": name}
        write: dict = {
            "update": {
                "name": name,
                "fields": {k: encode_value(v) for k, v in fields.items() if v is not SERVER_TIMESTAMP},
            }
        }
        transforms = [
            {"fieldPath": k, "setToServerValue": "REQUEST_TIME"}
            for k, v in fields.items() if v is SERVER_TIMESTAMP
        ]
        if transforms:
            write["updateTransforms"] = transforms
        return write

    async def commit_batch(self, collection, writes, auth_token=None):
        body = {"writes": [self._write(collection, doc_id, fields) for doc_id, fields in writes]}
        r = await self._send("POST", f"{self._base}:commit", "commit", auth_token, json=body)
        self._check(r, "commit")
        logger.info(f"Committed {len(writes)} writes to '{collection}'")
