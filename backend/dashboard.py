"""Arrest Map Backend — Dashboard Snapshot

`Dashboard` owns the current aggregate of arrest data. `refresh()` is the only
writer: it rebuilds the aggregate from the store and swaps it in with a single
assignment, so readers always see one complete snapshot. If the store cannot be
read, the dashboard shows all-zero data rather than failing.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from aggregation import METRICS, Aggregate, aggregate
from arrests import ArrestRecords
from colors import color, legend, rgb_string
from errors import ArrestMapError, BoundaryUnavailable
from geo import BoundarySource, feature_name, region_for_feature_name
from models import TableRow
from ranking import rank
from regions import CAPITAL_KEY, FEDERAL_KEY, canonicalize, display_name, is_federal, sanitize_string

logger = logging.getLogger("arrestmap.dashboard")


class Dashboard:
    def __init__(self, records: ArrestRecords, boundaries: Optional[BoundarySource] = None):
        self.records = records
        self.boundaries = boundaries
        self.snapshot: Aggregate = aggregate([])
        self.last_updated: Optional[datetime] = None

    async def refresh(self) -> Aggregate:
        try:
            records = await self.records.load_records()
        except ArrestMapError as e:
            logger.warning(f"Arrest data unavailable, showing empty dataset: {e.message}")
            records = []
        snapshot = aggregate(records)
        self.snapshot = snapshot
        self.last_updated = datetime.now(timezone.utc)
        logger.info(
            f"Dashboard refreshed: {snapshot.regions_with_data} regions, "
            f"{snapshot.total_arrests} arrests, {snapshot.total_fir} FIRs"
        )
        return snapshot

    # ── derived views ──

    def fill_color(self, region: Optional[str], metric: str = "arrests") -> str:
        snapshot = self.snapshot
        count = snapshot.map_counts(region)[metric] if region else 0
        return rgb_string(color(count, snapshot.max_for(metric)))

    def legend(self, metric: str = "arrests") -> dict:
        return legend(self.snapshot.max_for(metric))

    def table(self) -> list[TableRow]:
        return rank(self.snapshot.raw_view)

    def stats(self) -> dict:
        snapshot = self.snapshot
        updated = self.last_updated
        return {
            "totalArrests": snapshot.total_arrests,
            "totalFir": snapshot.total_fir,
            "regionsWithData": snapshot.regions_with_data,
            "lastUpdated": updated.isoformat() if updated else None,
            "lastUpdatedLabel": f"{updated.day} {updated.strftime('%b %Y')}" if updated else "",
            "ranking": list(snapshot.ranking),
        }

    def tooltip(self, name: str) -> dict:
        """Hover details for a boundary feature (or any region name).

        The headline counts match the map fill; for Delhi the breakdown lists
        Delhi's own counts and CBI's separately.
        """
        snapshot = self.snapshot
        region = canonicalize(name)
        label = sanitize_string(name) or (display_name(region) if region else "Unknown")
        if region is None:
            return {"name": label, "region": None, "arrests": 0, "fir": 0, "breakdown": []}

        if is_federal(region):
            counts = snapshot.raw_counts(FEDERAL_KEY)
        else:
            counts = snapshot.map_counts(region)

        breakdown = []
        if region == CAPITAL_KEY:
            for key, part_label in ((CAPITAL_KEY, display_name(CAPITAL_KEY)),
                                    (FEDERAL_KEY, display_name(FEDERAL_KEY))):
                raw = snapshot.raw_counts(key)
                breakdown.append({"label": part_label, "arrests": raw["arrests"], "fir": raw["fir"]})

        return {
            "name": label,
            "region": region,
            "arrests": counts["arrests"],
            "fir": counts["fir"],
            "breakdown": breakdown,
        }

    async def map_layer(self, metric: str = "arrests") -> list[dict]:
        """One fill entry per boundary feature."""
        if metric not in METRICS:
            metric = "arrests"
        if self.boundaries is None:
            raise BoundaryUnavailable()
        geojson = await self.boundaries.load()

        snapshot = self.snapshot
        features = []
        for feature in geojson["features"]:
            name = feature_name(feature)
            region = region_for_feature_name(name)
            counts = snapshot.map_counts(region) if region else {"arrests": 0, "fir": 0}
            features.append({
                "name": name,
                "region": region,
                "arrests": counts["arrests"],
                "fir": counts["fir"],
                "color": self.fill_color(region, metric),
            })
        return features
