"""
API models for the image classification endpoint.

Field names follow the JSON contract consumed by the front-end
(camelCase), while the Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ClassificationResponse(BaseModel):
    """Successful classification of an uploaded image."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "initialClassification": "plant",
                "detailedClassification": (
                    '{"common name": "Common daisy", "scientific name": "Bellis perennis", '
                    '"wikipedia link": "https://en.wikipedia.org/wiki/Bellis_perennis", '
                    '"basic information": "A perennial herb of the family Asteraceae."}'
                )
            }
        },
    )

    initial_classification: str = Field(..., alias="initialClassification", description="Free-text answer of the coarse plant / fungus / else call")
    detailed_classification: Optional[str] = Field(None, alias="detailedClassification", description="Free-text identification, null unless a plant or fungus was found")


class ErrorResponse(BaseModel):
    """Error body returned for rejected or failed requests."""
    error: str = Field(..., description="Error message")
