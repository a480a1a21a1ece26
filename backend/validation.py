"""Arrest Map Backend — Input Validation

Runs before any mutation is attempted. Failures name the offending field so
callers can say which input was wrong.
"""

import logging
import re
from typing import Any, Optional

from config import MAX_BATCH_UPDATES, MAX_COUNT
from errors import ValidationError
from regions import canonicalize, sanitize_string

logger = logging.getLogger("arrestmap.validation")

_INT_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")


def parse_count(value: Any) -> Optional[int]:
    """Parse a base-10 count in [0, MAX_COUNT]; None when it isn't one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        if not _INT_RE.match(value):
            return None
        number = int(value, 10)
    else:
        return None
    if number < 0 or number > MAX_COUNT:
        return None
    return number


def is_valid_count(value: Any) -> bool:
    return parse_count(value) is not None


def is_valid_region(name: Any) -> bool:
    return canonicalize(name) is not None


def validate_update(region: Any, arrests: Any, fir: Any = 0) -> tuple[str, int, int]:
    """Validate one update and return (canonical_key, arrests, fir)."""
    key = canonicalize(region)
    if key is None:
        raise ValidationError("Invalid state name", field="region")

    arrest_count = parse_count(arrests)
    if arrest_count is None:
        raise ValidationError(f"Invalid arrest count for {key}", field="arrests")

    fir_count = parse_count(fir)
    if fir_count is None:
        raise ValidationError(f"Invalid FIR count for {key}", field="fir")

    return key, arrest_count, fir_count


def validate_batch(updates: Any) -> list[tuple[str, int, int]]:
    """Validate a batch of {region, arrests, fir} updates, all or nothing."""
    if not isinstance(updates, (list, tuple)) or len(updates) == 0:
        raise ValidationError("Invalid updates", field="updates")
    if len(updates) > MAX_BATCH_UPDATES:
        raise ValidationError(
            f"Maximum {MAX_BATCH_UPDATES} updates per batch", field="updates"
        )

    validated = []
    for update in updates:
        if not isinstance(update, dict):
            raise ValidationError("Invalid updates", field="updates")
        region = update.get("region", update.get("state"))
        key = canonicalize(region)
        if key is None:
            raise ValidationError(f"Invalid state: {sanitize_string(region)}", field="region")
        arrests = update.get("arrests", update.get("count"))
        if not is_valid_count(arrests):
            raise ValidationError(f"Invalid arrest count for {key}", field="arrests")
        fir = update.get("fir", 0)
        if not is_valid_count(fir):
            raise ValidationError(f"Invalid FIR count for {key}", field="fir")
        validated.append((key, parse_count(arrests), parse_count(fir)))

    logger.debug(f"Validated batch of {len(validated)} updates")
    return validated
