"""
Report Module for the Transit Redesign Comparison Project

Renders the comparison table as a sortable, filterable HTML table and
the points of interest as an interactive map.
"""

import sys
from pathlib import Path

import folium
import pandas as pd
from itables import to_html_datatable

sys.path.append(str(Path(__file__).parent.parent))
from config import REPORT_CONFIG

TABLE_COLUMNS = [
    'From', 'To',
    'total time before', 'total time after', 'change total time (%)',
    'walk time before', 'walk time after', 'change walk time (%)',
]

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
<h1>{title}</h1>
{body}
</body>
</html>
"""


class RenderError(Exception):
    """Raised when a report artifact cannot be rendered or written."""


def _as_minutes(values: pd.Series) -> pd.Series:
    return values.astype(float).round().astype('Int64')


def _as_percent(values: pd.Series) -> pd.Series:
    return (values.astype(float) * 100).round(1)


def format_comparison_table(comparison: pd.DataFrame) -> pd.DataFrame:
    """
    Build the display table from comparison rows.

    Times are whole minutes, changes are percentages with one decimal.
    Pairs infeasible after the redesign keep empty after-columns.

    Args:
        comparison: Output of compare_scenarios

    Returns:
        DataFrame with TABLE_COLUMNS
    """
    table = pd.DataFrame({
        'From': comparison['from_id'].astype(str),
        'To': comparison['to_id'].astype(str),
        'total time before': _as_minutes(comparison['mean_total_time_before']),
        'total time after': _as_minutes(comparison['mean_total_time_after']),
        'change total time (%)': _as_percent(comparison['change_total']),
        'walk time before': _as_minutes(comparison['mean_walk_time_before']),
        'walk time after': _as_minutes(comparison['mean_walk_time_after']),
        'change walk time (%)': _as_percent(comparison['change_walk']),
    })
    return table[TABLE_COLUMNS].reset_index(drop=True)


def render_comparison_table(table: pd.DataFrame, output_path: Path,
                            title: str = None) -> Path:
    """
    Write the comparison table as a standalone interactive HTML page.

    Args:
        table: Output of format_comparison_table
        output_path: HTML file to write
        title: Page title

    Returns:
        Path of the written file
    """
    if title is None:
        title = REPORT_CONFIG['title']

    # Infeasible pairs render as empty cells
    cells = table.astype(object).where(table.notna(), None)

    try:
        body = to_html_datatable(
            cells,
            caption=title,
            connected=True,
            pageLength=REPORT_CONFIG['page_length'],
            order=[],
        )
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(PAGE_TEMPLATE.format(title=title, body=body), encoding='utf-8')
    except (OSError, TypeError, ValueError) as e:
        raise RenderError(f"Could not render comparison table: {e}") from e

    print(f"  Saved: {output_path}")
    return output_path


def build_poi_map(pois: pd.DataFrame, zoom_start: int = None) -> folium.Map:
    """
    Create a map with one marker per point of interest.

    Each marker shows its id as a permanent tooltip and its label as popup.

    Args:
        pois: POI table (id, label, lat, lon)
        zoom_start: Initial zoom level

    Returns:
        folium Map
    """
    if pois.empty:
        raise RenderError("No points of interest to map")

    if zoom_start is None:
        zoom_start = REPORT_CONFIG['map_zoom_start']

    center = [pois['lat'].mean(), pois['lon'].mean()]
    poi_map = folium.Map(location=center, zoom_start=zoom_start, tiles="OpenStreetMap")

    for poi in pois.itertuples(index=False):
        folium.Marker(
            location=[poi.lat, poi.lon],
            tooltip=folium.Tooltip(str(poi.id), permanent=True),
            popup=folium.Popup(str(poi.label)),
        ).add_to(poi_map)

    if len(pois) > 1:
        poi_map.fit_bounds([
            [pois['lat'].min(), pois['lon'].min()],
            [pois['lat'].max(), pois['lon'].max()],
        ])

    return poi_map


def render_poi_map(pois: pd.DataFrame, output_path: Path) -> Path:
    """
    Write the POI map as a standalone HTML page.

    Args:
        pois: POI table (id, label, lat, lon)
        output_path: HTML file to write

    Returns:
        Path of the written file
    """
    poi_map = build_poi_map(pois)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        poi_map.save(str(output_path))
    except OSError as e:
        raise RenderError(f"Could not write POI map: {e}") from e

    print(f"  Saved: {output_path}")
    return output_path

