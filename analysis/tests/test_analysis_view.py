"""
Tests for the derive-on-read analysis view.
"""

import pytest

from analysis.analysis_view import AnalysisView
from analysis.calculations.correlation import INDEPENDENT


@pytest.fixture
def dataset():
    return [
        {'name': 'a', 'x': '1', 'y': '2'},
        {'name': 'b', 'x': '2', 'y': 'n/a'},
        {'name': 'c', 'x': '3', 'y': '6'},
        {'name': 'd', 'x': '4', 'y': '8'},
    ]


class TestAnalysisView:
    """Tests for AnalysisView."""

    def test_empty_view(self):
        view = AnalysisView()
        assert view.columns == []
        assert view.numeric_columns == []
        assert view.statistics is None
        assert view.correlation is None

    def test_builders_return_new_views(self, dataset):
        view = AnalysisView()
        loaded = view.with_dataset(dataset)
        assert view.dataset == []
        assert loaded.dataset == dataset
        assert loaded.with_column('x') is not loaded

    def test_results_follow_latest_inputs(self, dataset):
        view = AnalysisView().with_dataset(dataset).with_column('x')
        assert view.statistics.count == 4

        view = view.with_column('y')
        assert view.statistics.count == 3

        view = view.with_dataset(dataset[:2])
        assert view.statistics.count == 1

    def test_statistics_ignore_filter(self, dataset):
        view = AnalysisView().with_dataset(dataset).with_column('x').with_filter('c')
        assert [r['name'] for r in view.filtered_rows] == ['c']
        assert view.statistics.count == 4

    def test_sorted_rows_descending(self, dataset):
        view = AnalysisView().with_dataset(dataset).with_sort('x', 'desc')
        assert [r['name'] for r in view.sorted_rows] == ['d', 'c', 'b', 'a']

    def test_correlation_uses_policy(self, dataset):
        view = AnalysisView().with_dataset(dataset)
        assert view.correlation['x']['y'] == pytest.approx(1.0, abs=0.01)

        independent = AnalysisView(correlation_policy=INDEPENDENT).with_dataset(dataset)
        assert independent.correlation['x']['y'] == 0.0

    def test_report(self, dataset):
        report = AnalysisView().with_dataset(dataset).with_column('x').with_filter('d').report()

        assert report['total_rows'] == 4
        assert report['filtered_rows'] == 1
        assert report['column_count'] == 3
        assert report['numeric_column_count'] == 2
        assert report['statistics']['mean'] == '2.50'
        assert report['correlation_matrix']['x']['x'] == 1.0
        assert report['data_sample'] == [dataset[3]]
