"""Controllers for aggregate counts and the farmer directory."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request

from dal.image_dal import ImageDAL
from services.farmer_directory import FarmerDirectoryService
from services.filter_normalizer import build_filter_set
from services.stats_service import StatsService


async def get_stats(
	request: Request,
	*,
	crop: Optional[str] = None,
	farmer: Optional[str] = None,
	pest_detected: Optional[str] = None,
	disease_detected: Optional[str] = None,
	gold_standard: Optional[str] = None,
) -> Dict[str, Any]:
	"""Return `{ok, total, verified}` over the whole filtered set."""
	aws = request.app.state.aws
	filters = build_filter_set(crop, farmer, pest_detected, disease_detected, gold_standard)
	service = StatsService(ImageDAL(aws.table), farmer_index=aws.farmer_index, crop_index=aws.crop_index)
	stats = await service.compute(filters)
	return {"ok": True, **stats.to_dict()}


async def get_farmers(request: Request) -> Dict[str, Any]:
	"""Return overall counts plus the per-farmer breakdown."""
	aws = request.app.state.aws
	directory = await FarmerDirectoryService(ImageDAL(aws.table)).build()
	return {"ok": True, **directory.to_dict()}
