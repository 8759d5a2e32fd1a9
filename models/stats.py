"""Aggregate count models returned by the stats and farmer directory services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class AggregateStats:
	"""Running `{total, verified}` counters."""

	total: int = 0
	verified: int = 0

	def add(self, is_verified: bool) -> None:
		self.total += 1
		if is_verified:
			self.verified += 1

	def to_dict(self) -> Dict[str, int]:
		return {"total": self.total, "verified": self.verified}


@dataclass
class FarmerTotals(AggregateStats):
	"""Counters for one farmer."""

	farmer: str = ""

	def to_dict(self) -> Dict[str, Any]:
		return {"farmer": self.farmer, "total": self.total, "verified": self.verified}


@dataclass
class FarmerDirectory:
	"""Overall counters plus the per-farmer breakdown, sorted by farmer name."""

	overall: AggregateStats = field(default_factory=AggregateStats)
	farmers: List[FarmerTotals] = field(default_factory=list)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"overall": self.overall.to_dict(),
			"farmers": [entry.to_dict() for entry in self.farmers],
		}
