"""Arrest Map Backend — Boundary Data

The state boundary GeoJSON is fetched once per process (file path or URL) and
cached. Feature names are resolved to canonical region keys here.
"""

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Optional

import httpx
from cachetools import LRUCache, cached

from cache import geo_cache
from errors import BoundaryUnavailable
from regions import canonicalize

logger = logging.getLogger("arrestmap.geo")

_NAME_CACHE = LRUCache(maxsize=256)
_NAME_CACHE_LOCK = Lock()


def feature_name(feature: dict) -> str:
    props = feature.get("properties") or {}
    name = props.get("name") or props.get("NAME") or ""
    return name if isinstance(name, str) else ""


@cached(_NAME_CACHE, lock=_NAME_CACHE_LOCK)
def region_for_feature_name(name: str) -> Optional[str]:
    region = canonicalize(name)
    if region is None and name:
        logger.warning(f"Boundary feature {name!r} does not match any region")
    return region


class BoundarySource:
    def __init__(self, source: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0):
        self.source = source
        self._client = client
        self._timeout = timeout

    async def _fetch(self) -> dict:
        if self.source.startswith(("http://", "https://")):
            client = self._client or httpx.AsyncClient(timeout=self._timeout)
            try:
                r = await client.get(self.source)
            except httpx.HTTPError as e:
                logger.error(f"Failed to fetch boundary data: {e}")
                raise BoundaryUnavailable() from e
            finally:
                if self._client is None:
                    await client.aclose()
            if r.status_code != 200:
                logger.error(f"Boundary data request returned {r.status_code}")
                raise BoundaryUnavailable()
            try:
                return r.json()
            except ValueError as e:
                logger.error(f"Boundary data is not valid JSON: {e}")
                raise BoundaryUnavailable() from e

        path = Path(self.source)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read boundary data from {path}: {e}")
            raise BoundaryUnavailable() from e

    async def load(self) -> dict:
        geojson = geo_cache.get(self.source)
        if geojson is not None:
            return geojson

        geojson = await self._fetch()
        if not isinstance(geojson, dict) or not isinstance(geojson.get("features"), list):
            logger.error("Boundary data has no feature list")
            raise BoundaryUnavailable()
        geo_cache.set(self.source, geojson)
        logger.info(f"Loaded {len(geojson['features'])} boundary features from {self.source}")
        return geojson
