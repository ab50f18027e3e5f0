"""
Chart series builder - turns a dataset slice into labelled numeric series.
Non-numeric cells plot as zero. Themes come from config/chart_themes.yml.
"""

import os
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml
from dotenv import load_dotenv

from analysis.calculations.numeric import chart_value, display_text
from analysis.calculations.descriptive import numeric_columns

# Load environment variables
load_dotenv()


CHART_TYPES = ('line', 'bar', 'pie', 'scatter', 'area')
LABEL_FIELDS = ('name', 'label', 'id', 'date')
DEFAULT_ROW_LIMIT = 20
DEFAULT_SERIES_LIMIT = 3
COLOR_SLOTS = ('primary', 'secondary', 'tertiary')

DEFAULT_THEMES_PATH = Path(__file__).resolve().parent.parent / 'config' / 'chart_themes.yml'


class ChartSeriesError(Exception):
    """Raised when chart series cannot be built."""
    pass


def load_chart_themes(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load chart themes from YAML.

    Args:
        config_path: Path to themes file (defaults to env CHART_THEMES_PATH)

    Returns:
        Dictionary with 'themes' and 'default_theme'

    Raises:
        ChartSeriesError: If the file is missing or malformed
    """
    if config_path is None:
        config_path = os.getenv('CHART_THEMES_PATH', str(DEFAULT_THEMES_PATH))

    config_file = Path(config_path)
    if not config_file.exists():
        raise ChartSeriesError(f"Chart themes file not found: {config_path}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ChartSeriesError(f"Failed to load chart themes: {e}")

    if not isinstance(config, dict) or not isinstance(config.get('themes'), dict):
        raise ChartSeriesError("Chart themes file missing 'themes' section")

    config.setdefault('default_theme', next(iter(config['themes']), None))
    return config


def row_label(record: Dict[str, Any], index: int) -> str:
    """Label from name/label/id/date fields, else 'Row N' (1-based)."""
    for field in LABEL_FIELDS:
        value = record.get(field)
        if value not in (None, ''):
            return display_text(value)
    return f"Row {index + 1}"


def build_chart_series(
    dataset: List[Dict[str, Any]],
    columns: Optional[List[str]] = None,
    start: int = 0,
    end: int = DEFAULT_ROW_LIMIT,
    chart_type: str = 'line',
    theme: Optional[str] = None,
    themes: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build chart-ready series for a row range.

    Args:
        dataset: List of record dictionaries
        columns: Columns to plot (defaults to the first 3 numeric columns)
        start: First row index (inclusive)
        end: Last row index (exclusive)
        chart_type: One of line, bar, pie, scatter, area
        theme: Theme name (defaults to the configured default theme)
        themes: Preloaded themes config (loaded from YAML when omitted)

    Returns:
        Dictionary with chart_type, labels, datasets, colors and range info

    Raises:
        ChartSeriesError: On unknown chart type, theme or invalid range
    """
    if chart_type not in CHART_TYPES:
        raise ChartSeriesError(f"Unknown chart type: {chart_type} (expected one of {CHART_TYPES})")

    if start < 0 or end < start:
        raise ChartSeriesError(f"Invalid row range: {start}..{end}")

    config = themes if themes is not None else load_chart_themes()
    theme_name = theme or config.get('default_theme')
    palette = config['themes'].get(theme_name)
    if palette is None:
        raise ChartSeriesError(f"Unknown chart theme: {theme_name}")

    available = numeric_columns(dataset)
    if columns is None:
        selected = available[:DEFAULT_SERIES_LIMIT]
    else:
        selected = [column for column in columns if column in available]

    rows = dataset[start:end]
    labels = [row_label(record, start + offset) for offset, record in enumerate(rows)]

    datasets = []
    for position, column in enumerate(selected):
        color = palette[COLOR_SLOTS[position % len(COLOR_SLOTS)]]
        datasets.append({
            'label': column,
            'data': [chart_value(record.get(column)) for record in rows],
            'color': color,
            'fill': chart_type == 'area'
        })

    return {
        'chart_type': chart_type,
        'theme': theme_name,
        'labels': labels,
        'datasets': datasets,
        'grid_color': palette.get('grid'),
        'text_color': palette.get('text'),
        'row_range': [start, start + len(rows)],
        'total_rows': len(dataset)
    }
