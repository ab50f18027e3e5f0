"""
Chart renderer - draws chart series to PNG with matplotlib.
Headless (Agg backend); output written atomically.
"""

import io
import logging
from pathlib import Path
from typing import Dict, Any

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from reports.atomic_writer import write_bytes_atomic

# Set up logger
logger = logging.getLogger(__name__)


FIG_SIZE = (10, 6)
DPI = 100
AREA_ALPHA = 0.25


class ChartRenderError(Exception):
    """Raised when a chart cannot be rendered."""
    pass


def _draw_pie(ax, series: Dict[str, Any]) -> None:
    # Pie shows the first dataset only; negative slices are not drawable
    dataset = series['datasets'][0]
    values = [max(value, 0.0) for value in dataset['data']]
    if sum(values) <= 0:
        raise ChartRenderError(f"Column '{dataset['label']}' has no positive values for a pie chart")

    ax.pie(values, labels=series['labels'], textprops={'color': series.get('text_color')})
    ax.set_title(dataset['label'], color=series.get('text_color'))


def _draw_xy(ax, series: Dict[str, Any]) -> None:
    chart_type = series['chart_type']
    labels = series['labels']
    positions = list(range(len(labels)))
    count = len(series['datasets'])
    bar_width = 0.8 / max(count, 1)

    for index, dataset in enumerate(series['datasets']):
        color = dataset['color']
        data = dataset['data']

        if chart_type == 'bar':
            offsets = [p - 0.4 + bar_width * (index + 0.5) for p in positions]
            ax.bar(offsets, data, width=bar_width, color=color, label=dataset['label'])
        elif chart_type == 'scatter':
            ax.scatter(positions, data, color=color, label=dataset['label'])
        else:
            ax.plot(positions, data, color=color, label=dataset['label'])
            if dataset.get('fill'):
                ax.fill_between(positions, data, color=color, alpha=AREA_ALPHA)

    ax.set_xticks(positions)
    ax.set_xticklabels(labels, rotation=45, ha='right')
    ax.grid(True, color=series.get('grid_color') or '#cccccc', linewidth=0.5)
    ax.legend()

    text_color = series.get('text_color')
    if text_color:
        for lbl in ax.get_xticklabels() + ax.get_yticklabels():
            lbl.set_color(text_color)


def render_chart_png(series: Dict[str, Any]) -> bytes:
    """
    Render chart series to PNG bytes.

    Args:
        series: Output of analysis.chart_series.build_chart_series

    Returns:
        PNG image bytes

    Raises:
        ChartRenderError: If there is nothing to draw
    """
    if not series.get('datasets'):
        raise ChartRenderError("No numeric columns to plot")
    if not series.get('labels'):
        raise ChartRenderError("No rows in the selected range")

    fig, ax = plt.subplots(figsize=FIG_SIZE)
    try:
        if series['chart_type'] == 'pie':
            _draw_pie(ax, series)
        else:
            _draw_xy(ax, series)

        start, end = series['row_range']
        fig.suptitle(f"Rows {start + 1}-{end} of {series['total_rows']} ({series['theme']})")
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=DPI)
        return buf.getvalue()
    finally:
        plt.close(fig)


def render_chart(series: Dict[str, Any], output_path: Path) -> Dict[str, Any]:
    """
    Render chart series and write the PNG atomically.

    Returns:
        Write result dictionary from write_bytes_atomic
    """
    png = render_chart_png(series)
    result = write_bytes_atomic(png, Path(output_path))

    if result['status'] == 'completed':
        logger.info(f"Chart written: {output_path} ({result['bytes_written']} bytes)")
    else:
        logger.error(f"Chart write failed: {result.get('error')}")

    return result
