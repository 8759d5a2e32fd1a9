"""Aggregate `{total, verified}` counts over the full filtered image set.

Uses the same strategy selection as paged retrieval but walks every page
to exhaustion. Reads are eventually consistent, so counts taken during
heavy concurrent edits may lag slightly; no strongly consistent read is
requested.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from boto3.dynamodb.conditions import ConditionBase

from dal.image_dal import ImageDAL, PageResult
from models.filters import FilterSet
from models.stats import AggregateStats
from services.filter_normalizer import GOLD_ATTR, build_filter_expression, matches_key_filters
from services.query_strategy import (
	CROP_ATTR,
	CROP_INDEX_NAME,
	FARMER_ATTR,
	FARMER_INDEX_NAME,
	QueryStrategy,
	select_strategy,
)

LOGGER = logging.getLogger(__name__)

STATS_PROJECTION = ("id", FARMER_ATTR, CROP_ATTR, GOLD_ATTR)


class StatsService:
	"""Count matching and verified records for a FilterSet."""

	def __init__(
		self,
		dal: ImageDAL,
		*,
		farmer_index: str = FARMER_INDEX_NAME,
		crop_index: str = CROP_INDEX_NAME,
	) -> None:
		self.dal = dal
		self.farmer_index = farmer_index
		self.crop_index = crop_index

	async def compute(self, filters: FilterSet) -> AggregateStats:
		"""Walk all pages for `filters` and return the accumulated counts."""
		strategy = select_strategy(filters)
		filter_expression = build_filter_expression(filters)
		stats = AggregateStats()
		start_key: Optional[Dict[str, Any]] = None

		while True:
			page = await self._fetch(strategy, filters, filter_expression, start_key)
			for row in page.rows:
				if not matches_key_filters(row, filters):
					continue
				stats.add(row.get(GOLD_ATTR) is True)
			start_key = page.last_key
			if not start_key:
				break

		LOGGER.debug("Stats for %s via %s: %s", filters, strategy.value, stats)
		return stats

	async def _fetch(
		self,
		strategy: QueryStrategy,
		filters: FilterSet,
		filter_expression: Optional[ConditionBase],
		start_key: Optional[Dict[str, Any]],
	) -> PageResult:
		if strategy in (QueryStrategy.FARMER_INDEX, QueryStrategy.FARMER_CROP):
			return await self.dal.query_index_page(
				self.farmer_index,
				FARMER_ATTR,
				filters.farmer,
				filter_expression=filter_expression,
				start_key=start_key,
				projection=STATS_PROJECTION,
			)
		if strategy is QueryStrategy.CROP_INDEX:
			return await self.dal.query_index_page(
				self.crop_index,
				CROP_ATTR,
				filters.crop,
				filter_expression=filter_expression,
				start_key=start_key,
				projection=STATS_PROJECTION,
			)
		return await self.dal.scan_page(
			filter_expression=filter_expression,
			start_key=start_key,
			projection=STATS_PROJECTION,
		)
