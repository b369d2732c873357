"""Food analysis pipeline and record store interface."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrilens.domain.analysis import (
    DEFAULT_PORTION_SIZE,
    UNKNOWN_FOOD,
    FoodAnalysis,
    FoodAnalysisDraft,
)
from nutrilens.domain.errors import AnalysisNotFoundError, SchemaViolationError
from nutrilens.services.uploads import UploadSource, UploadStager
from nutrilens.services.vision import VisionService

logger = logging.getLogger(__name__)

_ZERO_DEFAULT_FIELDS = {
    "confidence": "confidence",
    "totalCalories": "total_calories",
    "protein": "protein",
    "carbs": "carbs",
    "fats": "fats",
}
_OPTIONAL_NUTRIENT_FIELDS = ("fiber", "sugar", "sodium", "cholesterol")


class AnalysisRepository(Protocol):
    """Persistence interface for food analyses."""

    def create_food_analysis(self, draft: FoodAnalysisDraft) -> FoodAnalysis:
        """Store a draft under a fresh id and creation time and return it."""

    def get_food_analysis(self, analysis_id: str) -> FoodAnalysis | None:
        """Return the analysis for an id, if present."""

    def list_food_analyses(self, owner_id: str | None = None) -> list[FoodAnalysis]:
        """Return all analyses, optionally only those of one owner."""


@dataclass
class AnalysisService:
    """Runs uploads through the vision model and stores the results."""

    uploads: UploadStager
    vision_service: VisionService
    repository: AnalysisRepository

    async def analyze_upload(
        self, source: UploadSource | None, owner_id: str | None = None
    ) -> FoodAnalysis:
        """Validate, analyze and persist an uploaded meal photo.

        The staged file is removed on every exit path, only after the model
        call has finished.
        """
        staged = await self.uploads.stage(source)
        try:
            image_bytes = await asyncio.to_thread(staged.read_bytes)
            raw = await self.vision_service.analyze(image_bytes, staged.content_type)
            draft = normalize_analysis(
                raw, image_path=str(staged.path), owner_id=owner_id
            )
            analysis = self.repository.create_food_analysis(draft)
        finally:
            staged.discard()
        logger.info(
            "Stored food analysis",
            extra={"analysis_id": analysis.id, "detected_food": analysis.detected_food},
        )
        return analysis

    def get_analysis(self, analysis_id: str) -> FoodAnalysis:
        """Return a stored analysis or raise if it does not exist."""
        analysis = self.repository.get_food_analysis(analysis_id)
        if analysis is None:
            raise AnalysisNotFoundError(analysis_id)
        return analysis

    def list_analyses(self, owner_id: str | None = None) -> list[FoodAnalysis]:
        """Return stored analyses, optionally filtered by owner."""
        return self.repository.list_food_analyses(owner_id)


def normalize_analysis(
    raw: dict[str, object], image_path: str, owner_id: str | None = None
) -> FoodAnalysisDraft:
    """Apply defaults to a raw model answer and validate it as a draft.

    Missing required numbers become 0, missing ingredients an empty list and
    a missing portion size ``"1 serving"``. Optional nutrients stay unset.
    Anything else that does not fit the schema is rejected.
    """
    defaulted: list[str] = []
    values: dict[str, object] = {"owner_id": owner_id, "image_path": image_path}

    detected_food = raw.get("detectedFood")
    if detected_food is None or (
        isinstance(detected_food, str) and not detected_food.strip()
    ):
        defaulted.append("detectedFood")
        detected_food = UNKNOWN_FOOD
    values["detected_food"] = detected_food

    for key, field_name in _ZERO_DEFAULT_FIELDS.items():
        value = raw.get(key)
        if value is None:
            defaulted.append(key)
            value = 0
        values[field_name] = value

    for key in _OPTIONAL_NUTRIENT_FIELDS:
        values[key] = raw.get(key)

    ingredients = raw.get("ingredients")
    values["ingredients"] = [] if ingredients is None else ingredients

    portion_size = raw.get("portionSize")
    if portion_size is None or (
        isinstance(portion_size, str) and not portion_size.strip()
    ):
        defaulted.append("portionSize")
        portion_size = DEFAULT_PORTION_SIZE
    values["portion_size"] = portion_size

    if defaulted:
        logger.warning(
            "Vision result was missing fields; defaults applied: %s",
            ", ".join(defaulted),
        )

    try:
        return FoodAnalysisDraft(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise SchemaViolationError(
            f"analysis result did not match the expected schema ({problems})"
        ) from exc
