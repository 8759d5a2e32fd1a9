from fastapi import HTTPException, Request, UploadFile
from typing import Any, Dict, Mapping, Optional

from dal.image_dal import ImageDAL
from services.filter_normalizer import build_filter_set, parse_limit
from services.image_store import save_uploaded_image
from services.item_projector import project_items, utc_now_iso
from services.query_strategy import ImageQueryService
from services.signed_url_resolver import SignedUrlResolver
from utils.cursor_codec import decode_cursor, encode_cursor
from utils.media_validation import read_image_bytes, safe_filename
from utils.session_auth import resolve_identity

# Dashboard field name -> stored attribute name, for partial updates.
EDITABLE_STRING_FIELDS = {
    "plantingDate": "plantingDate",
    "crop": "cropName",
    "cropStage": "cropStage",
    "pestName": "pestName",
    "pestStage": "pestStage",
    "diseaseName": "diseaseName",
    "diseaseStage": "diseaseStage",
    "remarks": "remarks",
}
EDITABLE_BOOL_FIELDS = {
    "pestDetected": "pestPresent",
    "diseaseDetected": "diseasePresent",
    "goldStandard": "isGoldStandard",
}


def _resolver(aws: Any) -> SignedUrlResolver:
    return SignedUrlResolver(aws.s3_client, aws.bucket, expires_in=aws.signed_url_expires)


async def list_images(
    request: Request,
    *,
    limit: Optional[str] = None,
    cursor: Optional[str] = None,
    crop: Optional[str] = None,
    farmer: Optional[str] = None,
    pest_detected: Optional[str] = None,
    disease_detected: Optional[str] = None,
    gold_standard: Optional[str] = None,
) -> Dict[str, Any]:
    """Return one page of projected, URL-resolved images.

    Args:
        request: FastAPI Request object (used to access app.state.aws).
        limit: Raw page size (default 50, clamped to 1..200).
        cursor: Opaque token from a previous page; unreadable tokens restart.
        crop, farmer: Selections, "all" or blank meaning unfiltered.
        pest_detected, disease_detected, gold_standard: "true"/"false"/None.

    Returns:
        A dict with `items` (list of wire items) and `nextCursor` (str or None).
    """
    aws = request.app.state.aws
    filters = build_filter_set(crop, farmer, pest_detected, disease_detected, gold_standard)

    query_service = ImageQueryService(
        ImageDAL(aws.table),
        farmer_index=aws.farmer_index,
        crop_index=aws.crop_index,
        dual_filter_page_size=aws.dual_filter_page_size,
    )
    page = await query_service.fetch_page(filters, parse_limit(limit), decode_cursor(cursor))

    items = await _resolver(aws).resolve_items(project_items(page.rows))
    return {
        "items": [item.to_dict() for item in items],
        "nextCursor": encode_cursor(page.last_key),
    }


def collect_update_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the whitelisted, well-typed fields from an update payload.

    Strings are trimmed; booleans must be real booleans. Anything else is
    ignored rather than coerced.
    """
    fields: Dict[str, Any] = {}
    for name, attr in EDITABLE_STRING_FIELDS.items():
        value = payload.get(name)
        if isinstance(value, str):
            fields[attr] = value.strip()
    for name, attr in EDITABLE_BOOL_FIELDS.items():
        value = payload.get(name)
        if isinstance(value, bool):
            fields[attr] = value
    return fields


async def update_image(request: Request, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply a partial label update to one image record.

    Only the provided fields are written, plus `lastUpdatedAt` and (when the
    session resolves to an email) `lastUpdatedBy`. Concurrent editors are
    last-writer-wins.

    Raises:
        HTTPException(401) for a missing or invalid session.
        HTTPException(400) if the id is missing or no editable field is present.
    """
    user_email = await resolve_identity(request)

    image_id = payload.get("id") or payload.get("key")
    if image_id is None or not str(image_id).strip():
        raise HTTPException(status_code=400, detail="Missing id/key")

    fields = collect_update_fields(payload)
    if not fields:
        raise HTTPException(status_code=400, detail="No allowed fields to update")

    fields["lastUpdatedAt"] = utc_now_iso()
    if user_email:
        fields["lastUpdatedBy"] = user_email

    aws = request.app.state.aws
    await ImageDAL(aws.table).update_image(str(image_id).strip(), fields)
    return {"ok": True}


async def get_signed_url(request: Request, key: Optional[str]) -> Dict[str, str]:
    """Sign a single object key.

    Raises:
        HTTPException(400) if `key` is missing.
    """
    if not key or not key.strip():
        raise HTTPException(status_code=400, detail="Missing key")
    url = await _resolver(request.app.state.aws).sign(key.strip())
    return {"url": url}


async def upload_image(request: Request, file: UploadFile, farmer: Optional[str], crop: Optional[str]) -> Dict[str, Any]:
    """Store an uploaded image and create its metadata record.

    Raises:
        HTTPException(400) if farmer/crop are missing or the file is empty.
        HTTPException(415) if the file is not a supported image type.
    """
    if not farmer or not farmer.strip() or not crop or not crop.strip():
        raise HTTPException(status_code=400, detail="Missing required fields")

    image_bytes = await read_image_bytes(file)

    aws = request.app.state.aws
    record = await save_uploaded_image(
        ImageDAL(aws.table),
        aws.s3_client,
        aws.bucket,
        image_bytes,
        safe_filename(file.filename or ""),
        file.content_type or "application/octet-stream",
        farmer,
        crop,
    )
    return {"success": True, "id": record["id"]}
