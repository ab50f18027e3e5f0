"""
Tests for the analytics export document.
"""

from analysis.calculations.descriptive import summarize
from reports.analytics_report import export_report, DATA_SAMPLE_LIMIT


DATASET = [
    {'name': 'a', 'x': 1, 'y': 'n/a'},
    {'name': 'b', 'x': 2, 'y': 4},
    {'name': 'c', 'x': 3, 'y': 6},
]


class TestExportReport:
    """Tests for export_report."""

    def test_document(self):
        correlation = {'x': {'x': 1.0, 'y': 1.0}, 'y': {'x': 1.0, 'y': 1.0}}
        report = export_report(DATASET, DATASET[1:], summarize(DATASET, 'x'), correlation)

        assert report['total_rows'] == 3
        assert report['filtered_rows'] == 2
        assert report['column_count'] == 3
        assert report['numeric_column_count'] == 2
        assert report['statistics']['column'] == 'x'
        assert report['statistics']['count'] == 3
        assert report['statistics']['mean'] == '2.00'
        assert report['statistics']['variance'] == '0.67'
        assert report['correlation_matrix'] == correlation
        assert report['data_sample'] == DATASET[1:]

    def test_absent_statistics(self):
        report = export_report([], [], None, None)

        assert report == {
            'total_rows': 0,
            'filtered_rows': 0,
            'column_count': 0,
            'numeric_column_count': 0,
            'statistics': None,
            'correlation_matrix': None,
            'data_sample': []
        }

    def test_sample_capped_and_copied(self):
        dataset = [{'x': i} for i in range(DATA_SAMPLE_LIMIT + 50)]
        report = export_report(dataset, dataset, None, None)

        assert len(report['data_sample']) == DATA_SAMPLE_LIMIT
        report['data_sample'][0]['x'] = 'changed'
        assert dataset[0]['x'] == 0
