"""Turn raw query-string values into a FilterSet and a non-key filter expression.

Crop and farmer are key-condition material for the secondary indexes and
never end up in the filter expression; only the detection and
gold-standard flags do.
"""

from __future__ import annotations

from typing import Any, Optional

from boto3.dynamodb.conditions import Attr, ConditionBase

from models.filters import FilterSet

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

PEST_ATTR = "pestPresent"
DISEASE_ATTR = "diseasePresent"
GOLD_ATTR = "isGoldStandard"


def normalize_str(value: Any) -> str:
    """Return `value` as a trimmed string ("" for None)."""
    return ("" if value is None else str(value)).strip()


def normalize_lower(value: Any) -> str:
    return normalize_str(value).lower()


def normalize_crop(raw: Optional[str]) -> Optional[str]:
    """Lower-case a crop selection; "all" or blank means no crop filter."""
    crop = normalize_lower(raw)
    if not crop or crop == "all":
        return None
    return crop


def normalize_farmer(raw: Optional[str]) -> Optional[str]:
    """Trim a farmer selection keeping its case; "all" or blank means no filter."""
    farmer = normalize_str(raw)
    if not farmer or farmer.lower() == "all":
        return None
    return farmer


def parse_tristate(raw: Optional[str]) -> Optional[bool]:
    """Only the literals "true" and "false" select a value."""
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


def parse_limit(raw: Optional[str], default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    """Parse a page size, falling back to `default` and clamping to [1, maximum]."""
    text = normalize_str(raw)
    try:
        limit = int(text) if text else default
    except ValueError:
        limit = default
    return max(1, min(limit, maximum))


def build_filter_set(
    crop: Optional[str] = None,
    farmer: Optional[str] = None,
    pest_detected: Optional[str] = None,
    disease_detected: Optional[str] = None,
    gold_standard: Optional[str] = None,
) -> FilterSet:
    """Normalize the raw query parameters of one request."""
    return FilterSet(
        crop=normalize_crop(crop),
        farmer=normalize_farmer(farmer),
        pest_detected=parse_tristate(pest_detected),
        disease_detected=parse_tristate(disease_detected),
        gold_standard=parse_tristate(gold_standard),
    )


def build_filter_expression(filters: FilterSet) -> Optional[ConditionBase]:
    """Return the server-side non-key filter for `filters`, or None.

    A gold-standard filter of False also matches records that never had the
    attribute written.
    """
    parts = []
    if filters.pest_detected is not None:
        parts.append(Attr(PEST_ATTR).eq(filters.pest_detected))
    if filters.disease_detected is not None:
        parts.append(Attr(DISEASE_ATTR).eq(filters.disease_detected))
    if filters.gold_standard is True:
        parts.append(Attr(GOLD_ATTR).eq(True))
    elif filters.gold_standard is False:
        parts.append(Attr(GOLD_ATTR).not_exists() | Attr(GOLD_ATTR).eq(False))

    if not parts:
        return None
    expression = parts[0]
    for part in parts[1:]:
        expression = expression & part
    return expression


def matches_key_filters(row: dict, filters: FilterSet) -> bool:
    """Apply crop/farmer equality in the application layer.

    Used where the store query could not narrow by these attributes itself.
    """
    if filters.farmer is not None and normalize_str(row.get("farmerName")) != filters.farmer:
        return False
    if filters.crop is not None and normalize_lower(row.get("cropName")) != filters.crop:
        return False
    return True
