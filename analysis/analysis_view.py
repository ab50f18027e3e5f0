"""
Derive-on-read analysis view.
Holds the current inputs and recomputes every result when read.
"""

from dataclasses import dataclass, replace, field
from typing import Dict, Any, List, Optional

from analysis.calculations.descriptive import (
    StatisticsSummary,
    numeric_columns,
    all_columns,
    summarize
)
from analysis.calculations.correlation import correlation_matrix, PAIRWISE
from analysis.calculations.table_ops import filter_rows, sort_rows
from reports.analytics_report import export_report


@dataclass(frozen=True)
class AnalysisView:
    """
    Immutable set of view inputs.

    Setters return a new view, so the most recent view always reflects
    the latest dataset, column, filter and sort key.
    """
    dataset: List[Dict[str, Any]] = field(default_factory=list)
    selected_column: Optional[str] = None
    search_text: str = ''
    sort_column: Optional[str] = None
    sort_direction: str = 'asc'
    correlation_policy: str = PAIRWISE

    def with_dataset(self, dataset: List[Dict[str, Any]]) -> 'AnalysisView':
        return replace(self, dataset=list(dataset))

    def with_column(self, column: Optional[str]) -> 'AnalysisView':
        return replace(self, selected_column=column)

    def with_filter(self, search_text: Optional[str]) -> 'AnalysisView':
        return replace(self, search_text=search_text or '')

    def with_sort(self, column: Optional[str], direction: str = 'asc') -> 'AnalysisView':
        return replace(self, sort_column=column, sort_direction=direction)

    @property
    def columns(self) -> List[str]:
        return all_columns(self.dataset)

    @property
    def numeric_columns(self) -> List[str]:
        return numeric_columns(self.dataset)

    @property
    def filtered_rows(self) -> List[Dict[str, Any]]:
        return filter_rows(self.dataset, self.search_text)

    @property
    def sorted_rows(self) -> List[Dict[str, Any]]:
        return sort_rows(self.filtered_rows, self.sort_column, self.sort_direction)

    @property
    def statistics(self) -> Optional[StatisticsSummary]:
        # Statistics cover the whole dataset, not the filtered preview
        if not self.selected_column:
            return None
        return summarize(self.dataset, self.selected_column)

    @property
    def correlation(self) -> Optional[Dict[str, Dict[str, float]]]:
        return correlation_matrix(self.dataset, self.numeric_columns, self.correlation_policy)

    def report(self) -> Dict[str, Any]:
        """Export document for the current inputs."""
        return export_report(
            dataset=self.dataset,
            filtered_dataset=self.sorted_rows,
            summary=self.statistics,
            correlation=self.correlation
        )
