from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from app.core.exceptions import DatasetContractViolation
from app.models.analysis import AnalysisPublic
from app.models.expense import ExpenseDataset
from app.utils.analyzer import Aggregates, aggregate
from app.utils.insights import PromptPayload, compose_prompt
from app.utils.narrative import FallbackNarrativeGenerator, GenerationResult, RemoteNarrativeGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    """Aggregates, window bounds and narrative for one analysis request."""

    total: Decimal
    count: int
    average: Decimal
    category_totals: Dict[str, Decimal] = field(default_factory=dict)
    top_category: str = "N/A"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    narrative: str = ""
    narrative_source: str = FallbackNarrativeGenerator.source

    @classmethod
    def assemble(
        cls,
        dataset: ExpenseDataset,
        aggregates: Aggregates,
        narrative: str,
        narrative_source: str,
    ) -> "AnalysisReport":
        return cls(
            total=aggregates.total,
            count=aggregates.count,
            average=aggregates.average,
            category_totals=dict(aggregates.category_totals),
            top_category=aggregates.top_category,
            start_date=dataset.start_date,
            end_date=dataset.end_date,
            narrative=narrative,
            narrative_source=narrative_source,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalExpenses": self.total,
            "expenseCount": self.count,
            "categoryBreakdown": dict(self.category_totals),
            "averageExpense": self.average,
            "topCategory": self.top_category,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "aiInsights": self.narrative,
            "narrativeSource": self.narrative_source,
        }

    def to_public(self) -> AnalysisPublic:
        return AnalysisPublic(
            total_expenses=self.total,
            expense_count=self.count,
            category_breakdown=dict(self.category_totals),
            average_expense=self.average,
            top_category=self.top_category,
            start_date=self.start_date,
            end_date=self.end_date,
            ai_insights=self.narrative,
            narrative_source=self.narrative_source,
        )


class ReportBuilder:
    """
    Builds an AnalysisReport from a dataset: one remote narrative attempt, then
    the rule-based narrative if that attempt did not produce text.
    """

    def __init__(
        self,
        remote: Optional[RemoteNarrativeGenerator] = None,
        fallback: Optional[FallbackNarrativeGenerator] = None,
    ) -> None:
        self._remote = remote or RemoteNarrativeGenerator()
        self._fallback = fallback or FallbackNarrativeGenerator()

    def _try_remote(self, payload: PromptPayload) -> GenerationResult:
        try:
            return self._remote.generate(payload)
        except Exception as e:
            logger.error(f"Remote narrative generator raised unexpectedly: {str(e)}", exc_info=True)
            return GenerationResult.failure(str(e))

    def build_report(self, dataset: ExpenseDataset) -> AnalysisReport:
        if dataset is None:
            raise DatasetContractViolation("An expense dataset is required")

        aggregates = aggregate(dataset)
        payload = compose_prompt(dataset, aggregates)

        result = self._try_remote(payload)
        source = self._remote.source
        if not result.ok:
            reason = result.error.reason if result.error else "no text returned"
            logger.info(f"Using fallback narrative: {reason}")
            result = self._fallback.generate(payload)
            source = self._fallback.source

        logger.info(
            f"Built analysis report for {dataset.start_date}..{dataset.end_date}: "
            f"total={aggregates.total}, count={aggregates.count}, narrative={source}"
        )
        return AnalysisReport.assemble(dataset, aggregates, result.text, source)


def build_report(dataset: ExpenseDataset, builder: Optional[ReportBuilder] = None) -> AnalysisReport:
    return (builder or ReportBuilder()).build_report(dataset)
