"""Arrest Map Backend — FastAPI Routes"""

import logging
import time
from typing import Literal, Optional

import httpx
from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from arrests import ArrestRecords
from auth import FirebaseIdentityProvider, IdentityProvider, is_admin
from config import (
    ALLOWED_ORIGINS, FIREBASE_API_KEY, FIREBASE_PROJECT_ID, FIRESTORE_BASE_URL,
    GEOJSON_SOURCE, HTTP_TIMEOUT, IDENTITY_TOOLKIT_URL, RATE_LIMIT,
)
from dashboard import Dashboard
from errors import ArrestMapError
from geo import BoundarySource
from media import MediaLibrary
from models import (
    ArrestUpdateRequest, AuthStatus, BatchUpdateRequest, MapResponse,
    MediaRequest, MediaResponse, RegionOption, Stats, TableResponse,
    TooltipResponse, WriteResponse,
)
from regions import display_name, get_valid_regions_list
from store import FirestoreRestStore

logger = logging.getLogger("arrestmap")


# ─────────────────────────── Collaborators ──────────────────────

# Shared async HTTP client
client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)

store = (
    FirestoreRestStore(FIREBASE_PROJECT_ID, api_key=FIREBASE_API_KEY, base_url=FIRESTORE_BASE_URL, client=client)
    if FIREBASE_PROJECT_ID else None
)
identity = FirebaseIdentityProvider(FIREBASE_API_KEY, IDENTITY_TOOLKIT_URL, client=client) if FIREBASE_API_KEY else None
if store is None:
    logger.warning("FIREBASE_PROJECT_ID not set, serving empty data with writes disabled")

arrest_records = ArrestRecords(store, identity)
media_library = MediaLibrary(store, identity)
dashboard = Dashboard(arrest_records, BoundarySource(GEOJSON_SOURCE, client=client))


def get_dashboard() -> Dashboard:
    return dashboard


def get_arrest_records() -> ArrestRecords:
    return arrest_records


def get_media_library() -> MediaLibrary:
    return media_library


def get_identity() -> Optional[IdentityProvider]:
    return identity


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="India Arrest Map API", version="2.0.0")

_allowed_origins = [
    f"http://localhost:{p}" for p in range(3000, 3010)
] + [
    f"http://localhost:{p}" for p in range(5173, 5180)
] + [
    f"http://127.0.0.1:{p}" for p in range(3000, 3010)
] + [
    f"http://127.0.0.1:{p}" for p in range(5173, 5180)
] + ALLOWED_ORIGINS

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(ArrestMapError)
async def arrest_map_error_handler(request: Request, exc: ArrestMapError):
    content = {"detail": exc.message}
    field = getattr(exc, "field", None)
    if field:
        content["field"] = field
    return JSONResponse(status_code=exc.status_code, content=content)


# ─────────────────────────── Startup Event ──────────────────────

@app.on_event("startup")
async def startup_event():
    """Build the first snapshot so the map has data on first load."""
    await dashboard.refresh()


@app.on_event("shutdown")
async def shutdown_event():
    await client.aclose()


# ─────────────────────────── Rate Limiting ──────────────────────

_rate_store: dict[str, list[float]] = {}
RATE_WINDOW = 60  # seconds
_RATE_EVICT_INTERVAL = 300  # evict stale IPs every 5 minutes
_last_rate_evict = 0.0
_WRITE_METHODS = {"POST", "PUT", "DELETE"}


def _evict_stale_ips(now: float):
    global _last_rate_evict
    if now - _last_rate_evict <= _RATE_EVICT_INTERVAL:
        return
    stale_ips = [ip for ip, timestamps in _rate_store.items()
                 if not timestamps or now - timestamps[-1] > RATE_WINDOW * 2]
    for ip in stale_ips:
        del _rate_store[ip]
    _last_rate_evict = now


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    if request.method not in _WRITE_METHODS:
        return await call_next(request)

    client_ip = request.client.host if request.client else "unknown"
    now = time.time()
    _evict_stale_ips(now)

    timestamps = [t for t in _rate_store.get(client_ip, []) if now - t < RATE_WINDOW]
    if len(timestamps) >= RATE_LIMIT:
        _rate_store[client_ip] = timestamps
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many attempts. Please wait."},
        )

    timestamps.append(now)
    _rate_store[client_ip] = timestamps
    return await call_next(request)


# ─────────────────────────── Public Read Endpoints ──────────────

@app.get("/api/health")
async def health():
    return {"status": "ok", "storeConfigured": store is not None}


@app.get("/api/regions", response_model=list[RegionOption])
async def list_regions():
    return [RegionOption(key=k, displayName=display_name(k)) for k in get_valid_regions_list()]


@app.get("/api/map", response_model=MapResponse)
async def get_map(
    metric: Literal["arrests", "fir"] = "arrests",
    dash: Dashboard = Depends(get_dashboard),
):
    features = await dash.map_layer(metric)
    return {
        "metric": metric,
        "features": features,
        "legend": dash.legend(metric),
        "stats": dash.stats(),
    }


@app.get("/api/table", response_model=TableResponse)
async def get_table(dash: Dashboard = Depends(get_dashboard)):
    snapshot = dash.snapshot
    return TableResponse(
        rows=dash.table(),
        totalArrests=snapshot.total_arrests,
        totalFir=snapshot.total_fir,
    )


@app.get("/api/tooltip", response_model=TooltipResponse)
async def get_tooltip(name: str, dash: Dashboard = Depends(get_dashboard)):
    return dash.tooltip(name)


@app.get("/api/stats", response_model=Stats)
async def get_stats(dash: Dashboard = Depends(get_dashboard)):
    return dash.stats()


@app.post("/api/refresh", response_model=Stats)
async def refresh(dash: Dashboard = Depends(get_dashboard)):
    await dash.refresh()
    return dash.stats()


@app.get("/api/auth/me", response_model=AuthStatus)
async def auth_status(
    token: Optional[str] = Depends(bearer_token),
    provider: Optional[IdentityProvider] = Depends(get_identity),
):
    if not token or provider is None:
        return AuthStatus(authenticated=False)
    user = await provider.resolve(token)
    if user is None:
        return AuthStatus(authenticated=False)
    return AuthStatus(
        authenticated=True,
        isAdmin=is_admin(user),
        email=user.email,
        displayName=user.display_name or user.email,
    )


# ─────────────────────────── Admin: Arrest Records ──────────────

@app.put("/api/arrests/{region}", response_model=WriteResponse)
async def update_arrests(
    region: str,
    req: ArrestUpdateRequest,
    token: Optional[str] = Depends(bearer_token),
    records: ArrestRecords = Depends(get_arrest_records),
    dash: Dashboard = Depends(get_dashboard),
):
    key = await records.update(region, req.arrests, req.fir, id_token=token, additive=req.additive)
    await dash.refresh()
    return WriteResponse(status="updated", regions=[key])


@app.delete("/api/arrests/{region}", response_model=WriteResponse)
async def delete_arrests(
    region: str,
    token: Optional[str] = Depends(bearer_token),
    records: ArrestRecords = Depends(get_arrest_records),
    dash: Dashboard = Depends(get_dashboard),
):
    key = await records.delete(region, id_token=token)
    await dash.refresh()
    return WriteResponse(status="deleted", regions=[key])


@app.post("/api/arrests/batch", response_model=WriteResponse)
async def batch_update_arrests(
    req: BatchUpdateRequest,
    token: Optional[str] = Depends(bearer_token),
    records: ArrestRecords = Depends(get_arrest_records),
    dash: Dashboard = Depends(get_dashboard),
):
    updates = [item.model_dump(exclude_none=True) for item in req.updates]
    keys = await records.batch_update(updates, id_token=token, additive=req.additive)
    await dash.refresh()
    return WriteResponse(status="updated", regions=keys)


# ─────────────────────────── Media Links ────────────────────────

@app.get("/api/media", response_model=MediaResponse)
async def list_media(library: MediaLibrary = Depends(get_media_library)):
    try:
        media = await library.load()
    except ArrestMapError as e:
        logger.warning(f"Media unavailable: {e.message}")
        media = {}
    return {"media": media}


@app.post("/api/media")
async def add_media(
    req: MediaRequest,
    token: Optional[str] = Depends(bearer_token),
    library: MediaLibrary = Depends(get_media_library),
):
    media_id = await library.add(req.region, req.url, req.title, req.kind, id_token=token)
    return {"id": media_id, "status": "created"}


@app.delete("/api/media/{media_id}")
async def delete_media(
    media_id: str,
    token: Optional[str] = Depends(bearer_token),
    library: MediaLibrary = Depends(get_media_library),
):
    await library.delete(media_id, id_token=token)
    return {"id": media_id, "status": "deleted"}
