"""Models for food analysis records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNKNOWN_FOOD = "Unknown food"
DEFAULT_PORTION_SIZE = "1 serving"


class FoodAnalysisDraft(BaseModel):
    """Validated analysis data ready to be persisted.

    Validation is strict: values of the wrong type are rejected rather than
    coerced, so a model answering ``"42"`` for protein is a schema violation.
    """

    model_config = ConfigDict(
        strict=True,
        frozen=True,
        allow_inf_nan=False,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    owner_id: str | None = None
    image_path: str
    detected_food: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)
    total_calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fats: float = Field(ge=0)
    fiber: float | None = Field(default=None, ge=0)
    sugar: float | None = Field(default=None, ge=0)
    sodium: float | None = Field(default=None, ge=0)
    cholesterol: float | None = Field(default=None, ge=0)
    ingredients: list[str] = Field(default_factory=list)
    portion_size: str = Field(min_length=1)


class FoodAnalysis(FoodAnalysisDraft):
    """Persisted food analysis with identifier and creation time."""

    model_config = ConfigDict(strict=False)

    id: str
    created_at: datetime
