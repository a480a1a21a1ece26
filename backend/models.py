"""Arrest Map Backend — Pydantic Models"""

from typing import Any, Optional
from pydantic import BaseModel, Field

# Counts pass through uncoerced; validation.parse_count decides.
CountInput = Any


class TableRow(BaseModel):
    displayName: str
    region: str
    arrests: int
    fir: int
    sortKey: str


class TableResponse(BaseModel):
    rows: list[TableRow]
    totalArrests: int
    totalFir: int


class Legend(BaseModel):
    low: int
    high: int
    colors: list[str]
    noData: str


class Stats(BaseModel):
    totalArrests: int
    totalFir: int
    regionsWithData: int
    lastUpdated: Optional[str] = None  # ISO timestamp of the last refresh
    lastUpdatedLabel: str = ""         # e.g. "19 Oct 2026"
    ranking: list[str] = []            # map-view keys, most arrests first


class MapFeature(BaseModel):
    name: str                   # feature name as it appears in the boundary data
    region: Optional[str]       # canonical key, None when unrecognised
    arrests: int = 0
    fir: int = 0
    color: str


class MapResponse(BaseModel):
    metric: str
    features: list[MapFeature]
    legend: Legend
    stats: Stats


class TooltipBreakdown(BaseModel):
    label: str
    arrests: int
    fir: int


class TooltipResponse(BaseModel):
    name: str
    region: Optional[str]
    arrests: int = 0
    fir: int = 0
    breakdown: list[TooltipBreakdown] = []


class RegionOption(BaseModel):
    key: str
    displayName: str


class ArrestUpdateRequest(BaseModel):
    arrests: CountInput = None
    fir: CountInput = 0
    additive: bool = False


class BatchItem(BaseModel):
    region: Optional[str] = None
    arrests: CountInput = None
    fir: CountInput = 0
    state: Optional[str] = None   # legacy name for region
    count: CountInput = None      # legacy name for arrests


class BatchUpdateRequest(BaseModel):
    updates: list[BatchItem] = Field(default_factory=list)
    additive: bool = False


class WriteResponse(BaseModel):
    status: str
    regions: list[str] = []


class MediaItem(BaseModel):
    id: str
    url: str
    title: str
    kind: str = "article"
    createdAt: Optional[str] = None


class MediaRequest(BaseModel):
    region: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    kind: str = "article"


class MediaResponse(BaseModel):
    media: dict[str, list[MediaItem]]


class AuthStatus(BaseModel):
    authenticated: bool
    isAdmin: bool = False
    email: Optional[str] = None
    displayName: Optional[str] = None
