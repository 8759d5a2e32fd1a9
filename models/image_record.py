from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class ImageItem:
    """Wire-level view of a stored image record.

    Attributes:
        key: Record id (partition key of the images table).
        farmer: Farmer name as entered.
        crop: Crop name as entered.
        weather_location: Free-text weather location.
        created_at: ISO-8601 timestamp of the record.
        planting_date: Optional planting date string.
        pest_detected: Whether a pest was detected.
        disease_detected: Whether a disease was detected.
        is_gold_standard: Whether a reviewer verified the labels.
        pest_name / pest_stage: Pest labels.
        disease_name / disease_stage: Disease labels.
        crop_stage: Crop growth stage label.
        remarks: Reviewer remarks.
        last_updated_by / last_updated_at: Audit fields of the last edit.
        s3_key: Object key of the image blob (empty when unknown).
        image_url: Time-limited signed URL, filled in after resolution.
    """

    key: str
    farmer: str
    crop: str
    weather_location: str
    created_at: str
    planting_date: str = ""
    pest_detected: bool = False
    disease_detected: bool = False
    is_gold_standard: bool = False
    pest_name: str = ""
    pest_stage: str = ""
    disease_name: str = ""
    disease_stage: str = ""
    crop_stage: str = ""
    remarks: str = ""
    last_updated_by: str = ""
    last_updated_at: str = ""
    s3_key: str = ""
    image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase JSON shape consumed by the dashboard."""
        return {
            "key": self.key,
            "farmer": self.farmer,
            "crop": self.crop,
            "weatherLocation": self.weather_location,
            "createdAt": self.created_at,
            "plantingDate": self.planting_date,
            "pestDetected": self.pest_detected,
            "diseaseDetected": self.disease_detected,
            "isGoldStandard": self.is_gold_standard,
            "pestName": self.pest_name,
            "pestStage": self.pest_stage,
            "diseaseName": self.disease_name,
            "diseaseStage": self.disease_stage,
            "cropStage": self.crop_stage,
            "remarks": self.remarks,
            "lastUpdatedBy": self.last_updated_by,
            "lastUpdatedAt": self.last_updated_at,
            "s3Key": self.s3_key,
            "imageUrl": self.image_url,
        }
