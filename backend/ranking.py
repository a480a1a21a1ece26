"""Arrest Map Backend — Data Table Ranking

Every geographic region gets a row, including regions with no data. Delhi is
split into its own row and a CBI row right after it; the two are never summed
here (the map view is where they are folded together).
"""

from models import TableRow
from regions import CAPITAL_KEY, FEDERAL_KEY, GEOGRAPHIC_REGIONS, display_name

CAPITAL_LABEL = f"{display_name(CAPITAL_KEY)} (excl. CBI)"
FEDERAL_LABEL = display_name(FEDERAL_KEY)
# Sorts directly after "delhi" and before any other region key
FEDERAL_SORT_KEY = f"{CAPITAL_KEY} {FEDERAL_KEY}"


def _row(key: str, label: str, sort_key: str, raw_view: dict) -> TableRow:
    counts = raw_view.get(key, {})
    return TableRow(
        displayName=label,
        region=key,
        arrests=counts.get("arrests", 0),
        fir=counts.get("fir", 0),
        sortKey=sort_key,
    )


def _order(row: TableRow) -> tuple:
    # Arrest rows by arrests desc; then FIR-only rows by FIR desc; then empty rows.
    # sortKey is unique per row, so the order is total.
    if row.arrests > 0:
        return (0, -row.arrests, 0, row.sortKey)
    return (1, 0 if row.fir > 0 else 1, -row.fir, row.sortKey)


def build_rows(raw_view: dict[str, dict[str, int]]) -> list[TableRow]:
    """Unsorted rows in enumeration order, CBI directly after Delhi."""
    rows = []
    for key in GEOGRAPHIC_REGIONS:
        if key == CAPITAL_KEY:
            rows.append(_row(key, CAPITAL_LABEL, key, raw_view))
            rows.append(_row(FEDERAL_KEY, FEDERAL_LABEL, FEDERAL_SORT_KEY, raw_view))
        else:
            rows.append(_row(key, display_name(key), key, raw_view))
    return rows


def rank(raw_view: dict[str, dict[str, int]]) -> list[TableRow]:
    return sorted(build_rows(raw_view), key=_order)
