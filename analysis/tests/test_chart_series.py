"""
Tests for chart series building and theme loading.
"""

import pytest
from pathlib import Path

from analysis.chart_series import (
    build_chart_series,
    load_chart_themes,
    row_label,
    ChartSeriesError
)


@pytest.fixture
def themes():
    return {
        'default_theme': 'quantum',
        'themes': {
            'quantum': {'primary': '#00ffcc', 'secondary': '#ff6b6b', 'tertiary': '#4ecdc4',
                        'grid': '#333333', 'text': '#aaaaaa'},
            'neon': {'primary': '#ff0080', 'secondary': '#00ff80', 'tertiary': '#8000ff',
                     'grid': '#444444', 'text': '#cccccc'},
        }
    }


@pytest.fixture
def sales():
    return [
        {'name': f'item{i}', 'units': str(i), 'price': str(i * 2), 'tax': '1', 'cost': '3', 'note': 'x'}
        for i in range(30)
    ]


class TestLoadChartThemes:
    """Tests for YAML theme config."""

    def test_bundled_themes(self):
        config = load_chart_themes()
        assert config['default_theme'] == 'quantum'
        assert set(config['themes']) >= {'quantum', 'neon', 'ocean'}
        assert config['themes']['ocean']['primary'] == '#0077be'

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / 'themes.yml'
        path.write_text("themes:\n  mono:\n    primary: '#000000'\n")
        monkeypatch.setenv('CHART_THEMES_PATH', str(path))

        config = load_chart_themes()
        assert config['default_theme'] == 'mono'

    def test_missing_file(self, tmp_path):
        with pytest.raises(ChartSeriesError):
            load_chart_themes(str(tmp_path / 'nope.yml'))

    def test_missing_themes_section(self, tmp_path):
        path = tmp_path / 'bad.yml'
        path.write_text("colors: []\n")
        with pytest.raises(ChartSeriesError):
            load_chart_themes(str(path))


class TestRowLabel:
    """Tests for row labels."""

    def test_label_field_priority(self):
        assert row_label({'id': 7, 'label': 'L', 'name': 'N'}, 0) == 'N'
        assert row_label({'id': 7, 'label': 'L'}, 0) == 'L'
        assert row_label({'id': 7.0}, 0) == '7'

    def test_date_after_id(self):
        assert row_label({'date': '2025-08-01', 'v': 3}, 0) == '2025-08-01'
        assert row_label({'date': '2025-08-01', 'id': 'r1'}, 0) == 'r1'

    def test_fallback_is_one_based(self):
        assert row_label({'v': 1}, 0) == 'Row 1'
        assert row_label({'name': ''}, 4) == 'Row 5'


class TestBuildChartSeries:
    """Tests for build_chart_series."""

    def test_defaults_to_first_three_numeric_columns_and_twenty_rows(self, sales, themes):
        series = build_chart_series(sales, themes=themes)

        assert [d['label'] for d in series['datasets']] == ['units', 'price', 'tax']
        assert len(series['labels']) == 20
        assert series['labels'][0] == 'item0'
        assert series['row_range'] == [0, 20]
        assert series['total_rows'] == 30

    def test_colors_cycle_through_theme(self, sales, themes):
        series = build_chart_series(sales, columns=['units', 'price', 'tax', 'cost'], theme='neon', themes=themes)
        colors = [d['color'] for d in series['datasets']]
        assert colors == ['#ff0080', '#00ff80', '#8000ff', '#ff0080']
        assert series['grid_color'] == '#444444'

    def test_non_numeric_cells_plot_as_zero(self, themes):
        dataset = [{'v': '1'}, {'v': 'n/a'}, {'v': '3'}]
        series = build_chart_series(dataset, themes=themes)
        assert series['datasets'][0]['data'] == [1.0, 0.0, 3.0]
        assert series['labels'] == ['Row 1', 'Row 2', 'Row 3']

    def test_row_range(self, sales, themes):
        series = build_chart_series(sales, columns=['units'], start=25, end=40, themes=themes)
        assert series['datasets'][0]['data'] == [25.0, 26.0, 27.0, 28.0, 29.0]
        assert series['labels'][0] == 'item25'
        assert series['row_range'] == [25, 30]

    def test_area_fills(self, sales, themes):
        series = build_chart_series(sales, chart_type='area', themes=themes)
        assert all(d['fill'] for d in series['datasets'])

    def test_requested_non_numeric_columns_skipped(self, sales, themes):
        series = build_chart_series(sales, columns=['note', 'cost'], themes=themes)
        assert [d['label'] for d in series['datasets']] == ['cost']

    def test_empty_dataset(self, themes):
        series = build_chart_series([], themes=themes)
        assert series['datasets'] == []
        assert series['labels'] == []

    @pytest.mark.parametrize('kwargs', [
        {'chart_type': 'radar'},
        {'theme': 'sunset'},
        {'start': -1},
        {'start': 5, 'end': 2},
    ])
    def test_invalid_arguments(self, sales, themes, kwargs):
        with pytest.raises(ChartSeriesError):
            build_chart_series(sales, themes=themes, **kwargs)
