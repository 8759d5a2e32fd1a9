"""FastAPI routes for aggregate statistics and the farmer directory."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from controllers.stats_controller import get_farmers, get_stats
from utils.session_auth import require_session

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(require_session)])


@router.get("/stats")
async def stats_route(
	request: Request,
	crop: Optional[str] = Query(None),
	farmer: Optional[str] = Query(None),
	pestDetected: Optional[str] = Query(None),
	diseaseDetected: Optional[str] = Query(None),
	goldStandard: Optional[str] = Query(None),
):
	try:
		return await get_stats(
			request,
			crop=crop,
			farmer=farmer,
			pest_detected=pestDetected,
			disease_detected=diseaseDetected,
			gold_standard=goldStandard,
		)
	except HTTPException:
		raise
	except Exception as exc:
		LOGGER.exception("Stats computation failed")
		raise HTTPException(status_code=500, detail="Failed to compute stats") from exc


@router.get("/farmers")
async def farmers_route(request: Request):
	try:
		return await get_farmers(request)
	except HTTPException:
		raise
	except Exception as exc:
		LOGGER.exception("Farmer directory failed")
		raise HTTPException(status_code=500, detail="Failed to load farmers") from exc
