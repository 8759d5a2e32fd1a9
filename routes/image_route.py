import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from pydantic import BaseModel, ConfigDict

from controllers.image_controller import get_signed_url, list_images, update_image, upload_image
from utils.session_auth import require_session

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(require_session)])


class ImageUpdatePayload(BaseModel):
	model_config = ConfigDict(extra="ignore")

	id: Optional[Union[str, int]] = None
	key: Optional[Union[str, int]] = None
	plantingDate: Optional[str] = None
	crop: Optional[str] = None
	cropStage: Optional[str] = None
	pestDetected: Optional[bool] = None
	pestName: Optional[str] = None
	pestStage: Optional[str] = None
	diseaseDetected: Optional[bool] = None
	diseaseName: Optional[str] = None
	diseaseStage: Optional[str] = None
	remarks: Optional[str] = None
	goldStandard: Optional[bool] = None


@router.get("/images")
async def get_images(
	request: Request,
	limit: Optional[str] = Query(None),
	cursor: Optional[str] = Query(None),
	crop: Optional[str] = Query(None),
	farmer: Optional[str] = Query(None),
	pestDetected: Optional[str] = Query(None),
	diseaseDetected: Optional[str] = Query(None),
	goldStandard: Optional[str] = Query(None),
):
	"""Return one page of images plus `nextCursor` (null when no more pages)."""
	try:
		return await list_images(
			request,
			limit=limit,
			cursor=cursor,
			crop=crop,
			farmer=farmer,
			pest_detected=pestDetected,
			disease_detected=diseaseDetected,
			gold_standard=goldStandard,
		)
	except HTTPException:
		raise
	except Exception as exc:
		LOGGER.exception("Image retrieval failed")
		raise HTTPException(status_code=500, detail="Failed to fetch images") from exc


@router.put("/images/update")
async def put_image_update(request: Request, payload: ImageUpdatePayload):
	"""Partially update the labels of one image."""
	try:
		return await update_image(request, payload.model_dump(exclude_none=True))
	except HTTPException:
		raise
	except Exception as exc:
		LOGGER.exception("Image update failed")
		raise HTTPException(status_code=500, detail="Failed to update image") from exc


@router.get("/images/signed-url")
async def get_image_signed_url(request: Request, key: Optional[str] = Query(None)):
	"""Return a one-hour signed URL for a single object key."""
	try:
		return await get_signed_url(request, key)
	except HTTPException:
		raise
	except Exception as exc:
		LOGGER.exception("Signing %r failed", key)
		raise HTTPException(status_code=500, detail="Failed to sign URL") from exc


@router.post("/upload")
async def post_upload(
	request: Request,
	file: UploadFile = File(...),
	farmer: Optional[str] = Form(None),
	crop: Optional[str] = Form(None),
):
	"""Store an uploaded crop image and create its record."""
	try:
		return await upload_image(request, file, farmer, crop)
	except HTTPException:
		raise
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except Exception as exc:
		LOGGER.exception("Upload failed")
		raise HTTPException(status_code=500, detail="Upload failed") from exc
