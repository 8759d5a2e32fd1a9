"""Per-request filter models for image retrieval and statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FilterSet:
	"""Normalized filters built from one request's query parameters.

	`crop` is lower-cased and `farmer` is trimmed; `None` means unfiltered.
	The boolean flags are tri-state: True, False or None (unfiltered).
	"""

	crop: Optional[str] = None
	farmer: Optional[str] = None
	pest_detected: Optional[bool] = None
	disease_detected: Optional[bool] = None
	gold_standard: Optional[bool] = None

	@property
	def farmer_selected(self) -> bool:
		return self.farmer is not None

	@property
	def crop_selected(self) -> bool:
		return self.crop is not None
