"""
Main Analysis Runner for the Transit Redesign Comparison Project

This script runs the complete comparison pipeline:
1. Load points of interest
2. Compute expanded travel time matrices before and after the redesign
3. Aggregate per origin/destination pair and compare the scenarios
4. Render the interactive table, the POI map and static figures

Usage:
    python run_analysis.py                              # Run full analysis
    python run_analysis.py --poi-source pois.csv        # Use a local POI file
    python run_analysis.py --no-render                  # Only write the CSV
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config import REPORTS_DIR, FIGURES_DIR, SCENARIOS, ROUTING_PARAMS, REPORT_CONFIG
from data.load_data import load_points_of_interest
from routing.travel_time_matrix import build_router
from analysis.travel_time import aggregate_scenario, compare_scenarios, summarize_comparison
from visualization.report import (
    RenderError, format_comparison_table, render_comparison_table, render_poi_map
)
from visualization.plots import generate_all_visualizations


def print_header(title: str):
    """Print a formatted header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def compute_scenario(router, pois: pd.DataFrame, departure: datetime,
                     params: Dict = None) -> pd.DataFrame:
    """
    Route every POI pair over the departure window and aggregate per pair.

    Args:
        router: Routing client exposing expanded_travel_time_matrix
        pois: POI table, used as both origins and destinations
        departure: Start of the departure window
        params: Routing parameters (defaults to ROUTING_PARAMS)

    Returns:
        Aggregated pairs for this scenario
    """
    if params is None:
        params = ROUTING_PARAMS

    records = router.expanded_travel_time_matrix(
        pois, pois, departure,
        time_window=params['time_window'],
        transport_modes=params['transport_modes'],
        max_walk_time=params['max_walk_time'],
        max_trip_duration=params['max_trip_duration'],
    )
    print(f"  {len(records)} travel time records")

    aggregated = aggregate_scenario(records)
    print(f"  {len(aggregated)} reachable origin/destination pairs")
    return aggregated


def render_report(comparison: pd.DataFrame, pois: pd.DataFrame,
                  output_dir: Path) -> Dict:
    """
    Render the table, the POI map and the figures.

    Each artifact is rendered on its own; a RenderError is reported and
    the remaining artifacts are still attempted.

    Returns:
        Dictionary with 'report' (artifact name to path), 'figures' and
        'render_errors'
    """
    rendered = {'report': {}, 'figures': [], 'render_errors': []}

    try:
        table = format_comparison_table(comparison)
        rendered['report']['table'] = render_comparison_table(
            table, output_dir / REPORT_CONFIG['table_file'])
    except RenderError as e:
        print(f"  Table rendering failed: {e}")
        rendered['render_errors'].append(e)

    try:
        rendered['report']['map'] = render_poi_map(pois, output_dir / REPORT_CONFIG['map_file'])
    except RenderError as e:
        print(f"  Map rendering failed: {e}")
        rendered['render_errors'].append(e)

    try:
        rendered['figures'] = generate_all_visualizations(comparison, output_dir / FIGURES_DIR.name)
    except RenderError as e:
        print(f"  Figure rendering failed: {e}")
        rendered['render_errors'].append(e)

    if rendered['render_errors']:
        print(f"  Computed data is available in {output_dir / REPORT_CONFIG['csv_file']}")

    return rendered


def run_full_analysis(poi_source=None, output_dir: Path = None,
                      routers: Dict = None, render: bool = True) -> Dict:
    """
    Run the complete comparison pipeline.

    Loading and routing errors abort the run. Rendering errors are
    reported and leave the saved CSV in place.

    Args:
        poi_source: POI sheet id or CSV path (defaults to config)
        output_dir: Directory for output files
        routers: Optional mapping of scenario name to routing client
        render: Render HTML report and figures

    Returns:
        Dictionary with all analysis results
    """
    if output_dir is None:
        output_dir = REPORTS_DIR
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    start_time = datetime.now()

    print_header("TRANSIT REDESIGN TRAVEL TIME COMPARISON")
    print(f"Started: {start_time.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Output Directory: {output_dir}")

    print_header("POINTS OF INTEREST")
    pois = load_points_of_interest(poi_source)

    results = {'pois': pois, 'scenarios': {}}

    # Scenarios are routed one after the other
    for i, (name, scenario) in enumerate(SCENARIOS.items(), 1):
        print_header(f"ROUTING [{i}/{len(SCENARIOS)}]: {name.upper()}")
        print(f"Departure: {scenario['departure']:%Y-%m-%d %H:%M}, "
              f"window: {ROUTING_PARAMS['time_window']} min")

        if routers is not None and name in routers:
            router = routers[name]
        else:
            router = build_router(scenario['gtfs_dir'])

        results['scenarios'][name] = compute_scenario(router, pois, scenario['departure'])

    print_header("COMPARISON")
    comparison = compare_scenarios(results['scenarios']['before'], results['scenarios']['after'])
    results['comparison'] = comparison

    csv_path = output_dir / REPORT_CONFIG['csv_file']
    comparison.to_csv(csv_path, index=False)
    results['csv'] = csv_path
    print(f"  Saved: {csv_path}")

    summary = summarize_comparison(comparison)
    results['summary'] = summary

    if render:
        print_header("REPORT")
        results.update(render_report(comparison, pois, output_dir))

    end_time = datetime.now()

    print_header("ANALYSIS COMPLETE")
    print(f"Finished: {end_time.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Duration: {end_time - start_time}")

    print_header("KEY FINDINGS SUMMARY")
    print(f"  - Pairs compared: {summary['pairs_compared']}")
    print(f"  - Faster after redesign: {summary['pairs_faster']}")
    print(f"  - Slower after redesign: {summary['pairs_slower']}")
    print(f"  - Unreachable after redesign: {summary['pairs_infeasible_after']}")
    if summary['mean_change_total'] is not None:
        print(f"  - Mean change in total time: {summary['mean_change_total'] * 100:+.1f}%")

    return results


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Compare transit travel times before and after a network redesign"
    )
    parser.add_argument(
        '--poi-source',
        help='Google Sheets document id or local CSV file with id, label, lat, lon'
    )
    parser.add_argument(
        '--output-dir', type=Path,
        help='Directory for the report files'
    )
    parser.add_argument(
        '--no-render', action='store_true',
        help='Only write the comparison CSV'
    )

    args = parser.parse_args()

    run_full_analysis(
        poi_source=args.poi_source,
        output_dir=args.output_dir,
        render=not args.no_render,
    )


if __name__ == "__main__":
    main()
