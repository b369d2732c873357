"""Process-memory food analysis repository."""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from nutrilens.domain.analysis import FoodAnalysis, FoodAnalysisDraft
from nutrilens.services.analyses import AnalysisRepository


@dataclass
class InMemoryAnalysisRepository(AnalysisRepository):
    """Keeps analyses in a dict for the lifetime of the process."""

    analyses: dict[str, FoodAnalysis] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create_food_analysis(self, draft: FoodAnalysisDraft) -> FoodAnalysis:
        """Store a draft under a fresh id and return the record."""
        analysis = FoodAnalysis(
            **draft.model_dump(),
            id=str(uuid4()),
            created_at=datetime.now(tz=UTC),
        )
        with self._lock:
            self.analyses[analysis.id] = analysis
        return analysis

    def get_food_analysis(self, analysis_id: str) -> FoodAnalysis | None:
        """Return the analysis for an id, if present."""
        with self._lock:
            return self.analyses.get(analysis_id)

    def list_food_analyses(self, owner_id: str | None = None) -> list[FoodAnalysis]:
        """Return a snapshot of stored analyses."""
        with self._lock:
            analyses = list(self.analyses.values())
        if owner_id is None:
            return analyses
        return [analysis for analysis in analyses if analysis.owner_id == owner_id]
