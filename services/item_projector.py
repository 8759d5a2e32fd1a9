"""Map raw DynamoDB image items to the wire-level ImageItem.

Records written before a field existed must still render, so every
optional attribute falls back to an explicit default instead of raising.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping

from models.image_record import ImageItem


def _text(raw: Mapping[str, Any], attr: str) -> str:
    value = raw.get(attr)
    return "" if value is None else str(value)


def storage_key_of(raw: Mapping[str, Any]) -> str:
    """Return the object key for a record; `imageUrl` takes precedence over `s3Key`."""
    for attr in ("imageUrl", "s3Key"):
        value = raw.get(attr)
        if value is not None:
            return str(value)
    return ""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def project_item(raw: Mapping[str, Any]) -> ImageItem:
    """Project one raw record, substituting defaults for absent fields."""
    timestamp = raw.get("timestamp")
    return ImageItem(
        key=_text(raw, "id"),
        farmer=_text(raw, "farmerName"),
        crop=_text(raw, "cropName"),
        weather_location=_text(raw, "weatherLocation"),
        created_at=str(timestamp) if timestamp is not None else utc_now_iso(),
        planting_date=_text(raw, "plantingDate"),
        pest_detected=bool(raw.get("pestPresent")),
        disease_detected=bool(raw.get("diseasePresent")),
        is_gold_standard=bool(raw.get("isGoldStandard")),
        pest_name=_text(raw, "pestName"),
        pest_stage=_text(raw, "pestStage"),
        disease_name=_text(raw, "diseaseName"),
        disease_stage=_text(raw, "diseaseStage"),
        crop_stage=_text(raw, "cropStage"),
        remarks=_text(raw, "remarks"),
        last_updated_by=_text(raw, "lastUpdatedBy"),
        last_updated_at=_text(raw, "lastUpdatedAt"),
        s3_key=storage_key_of(raw),
    )


def project_items(rows: Iterable[Mapping[str, Any]]) -> List[ImageItem]:
    return [project_item(row) for row in rows]
