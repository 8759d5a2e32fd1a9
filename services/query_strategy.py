"""Strategy selection and execution for paged image retrieval.

The images table has one secondary index keyed by farmer name and one keyed
by crop name, both ordered by timestamp. There is no composite index, so a
farmer AND crop selection queries the farmer index and applies crop
equality in Python, page after page, until enough matches are collected.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import ConditionBase

from dal.image_dal import ImageDAL, PageResult
from models.filters import FilterSet
from services.filter_normalizer import build_filter_expression, matches_key_filters

LOGGER = logging.getLogger(__name__)

FARMER_INDEX_NAME = "GSI_FarmerNameTimestamp"
CROP_INDEX_NAME = "GSI_CropNameTimestamp"
FARMER_ATTR = "farmerName"
CROP_ATTR = "cropName"

# DynamoDB applies Limit before FilterExpression, so the accumulation loop
# reads fixed-size pages independent of the caller's page size.
DUAL_FILTER_PAGE_SIZE = 200


class QueryStrategy(enum.Enum):
	SCAN = "scan"
	CROP_INDEX = "crop_index"
	FARMER_INDEX = "farmer_index"
	FARMER_CROP = "farmer_crop"


def select_strategy(filters: FilterSet) -> QueryStrategy:
	"""Pick the retrieval strategy from which of farmer/crop are selected."""
	if filters.farmer_selected and filters.crop_selected:
		return QueryStrategy.FARMER_CROP
	if filters.farmer_selected:
		return QueryStrategy.FARMER_INDEX
	if filters.crop_selected:
		return QueryStrategy.CROP_INDEX
	return QueryStrategy.SCAN


class ImageQueryService:
	"""Run one page of retrieval for a FilterSet.

	Store errors propagate unchanged; nothing here retries, because a retry
	in the middle of the accumulation loop could skip or repeat rows.
	"""

	def __init__(
		self,
		dal: ImageDAL,
		*,
		farmer_index: str = FARMER_INDEX_NAME,
		crop_index: str = CROP_INDEX_NAME,
		dual_filter_page_size: int = DUAL_FILTER_PAGE_SIZE,
	) -> None:
		self.dal = dal
		self.farmer_index = farmer_index
		self.crop_index = crop_index
		self.dual_filter_page_size = dual_filter_page_size

	async def fetch_page(
		self,
		filters: FilterSet,
		limit: int,
		start_key: Optional[Dict[str, Any]] = None,
	) -> PageResult:
		"""Return up to `limit` raw rows and the continuation key to resume from."""
		strategy = select_strategy(filters)
		filter_expression = build_filter_expression(filters)

		if strategy is QueryStrategy.FARMER_CROP:
			return await self._accumulate_farmer_crop(filters, filter_expression, limit, start_key)

		if strategy is QueryStrategy.FARMER_INDEX:
			return await self.dal.query_index_page(
				self.farmer_index,
				FARMER_ATTR,
				filters.farmer,
				filter_expression=filter_expression,
				limit=limit,
				start_key=start_key,
			)

		if strategy is QueryStrategy.CROP_INDEX:
			return await self.dal.query_index_page(
				self.crop_index,
				CROP_ATTR,
				filters.crop,
				filter_expression=filter_expression,
				limit=limit,
				start_key=start_key,
			)

		return await self.dal.scan_page(
			filter_expression=filter_expression,
			limit=limit,
			start_key=start_key,
		)

	async def _accumulate_farmer_crop(
		self,
		filters: FilterSet,
		filter_expression: Optional[ConditionBase],
		limit: int,
		start_key: Optional[Dict[str, Any]],
	) -> PageResult:
		"""Walk the farmer index until `limit` crop matches or the index ends.

		The returned key marks the index position where accumulation stopped,
		not the last match returned, so a resumed walk may yield a page of a
		different size.
		"""
		collected: List[Dict[str, Any]] = []
		pages = 0
		next_key = start_key

		while True:
			page = await self.dal.query_index_page(
				self.farmer_index,
				FARMER_ATTR,
				filters.farmer,
				filter_expression=filter_expression,
				limit=self.dual_filter_page_size,
				start_key=next_key,
			)
			pages += 1
			collected.extend(row for row in page.rows if matches_key_filters(row, filters))
			next_key = page.last_key
			if len(collected) >= limit or not next_key:
				break

		LOGGER.info(
			"Farmer+crop accumulation for %r/%r: %d page(s), %d match(es)",
			filters.farmer,
			filters.crop,
			pages,
			len(collected),
		)
		return PageResult(rows=collected[:limit], last_key=next_key)
