"""Per-farmer totals built from one full-table scan.

This is the most expensive read in the service and is meant for populating
the farmer picker, not for every navigation.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from dal.image_dal import ImageDAL
from models.stats import FarmerDirectory, FarmerTotals
from services.filter_normalizer import GOLD_ATTR, normalize_str
from services.query_strategy import FARMER_ATTR


def _farmer_sort_key(entry: FarmerTotals):
    # Case-insensitive first, lowercase before uppercase on ties.
    return entry.farmer.casefold(), entry.farmer.swapcase()


class FarmerDirectoryService:
    """Aggregate `{total, verified}` per farmer and overall."""

    def __init__(self, dal: ImageDAL) -> None:
        self.dal = dal

    async def build(self) -> FarmerDirectory:
        directory = FarmerDirectory()
        by_farmer: Dict[str, FarmerTotals] = {}
        start_key: Optional[Dict[str, Any]] = None

        while True:
            page = await self.dal.scan_page(start_key=start_key, projection=(FARMER_ATTR, GOLD_ATTR))
            for row in page.rows:
                farmer = normalize_str(row.get(FARMER_ATTR))
                if not farmer:
                    continue
                verified = row.get(GOLD_ATTR) is True
                directory.overall.add(verified)
                by_farmer.setdefault(farmer, FarmerTotals(farmer=farmer)).add(verified)
            start_key = page.last_key
            if not start_key:
                break

        directory.farmers = sorted(by_farmer.values(), key=_farmer_sort_key)
        return directory
