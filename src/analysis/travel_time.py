"""
Travel Time Analysis Module for the Transit Redesign Comparison Project

Reduces per-minute travel time records to per-pair means for each
scenario and compares the scenarios before and after the redesign.
"""

import warnings
from typing import Dict

import numpy as np
import pandas as pd

PAIR_KEY = ['from_id', 'to_id']
MEAN_COLUMNS = ['mean_total_time', 'mean_walk_time', 'mean_transfer_time']
AGGREGATED_COLUMNS = PAIR_KEY + ['origin_destination'] + MEAN_COLUMNS + ['n_departures']

# change column -> base metric
CHANGE_COLUMNS = {
    'change_total': 'mean_total_time',
    'change_walk': 'mean_walk_time',
    'change_transfer': 'mean_transfer_time',
}


def origin_destination_label(from_id: pd.Series, to_id: pd.Series) -> pd.Series:
    """Build the "{from_id} to {to_id}" display key."""
    return from_id.astype(str) + " to " + to_id.astype(str)


def aggregate_scenario(records: pd.DataFrame) -> pd.DataFrame:
    """
    Average the per-minute travel time records of one scenario per pair.

    Self-pairs are dropped first. Walk time is access plus egress time,
    summed per record before averaging. Pairs without any feasible
    departure have no records and therefore no row.

    Args:
        records: Travel time records (from_id, to_id, departure_minute,
            total_time, access_time, egress_time, transfer_time)

    Returns:
        DataFrame with one row per (from_id, to_id) pair
    """
    df = records[records['from_id'] != records['to_id']]
    df = df.dropna(subset=['total_time'])

    if df.empty:
        return pd.DataFrame(columns=AGGREGATED_COLUMNS)

    df = df.assign(walk_time=df['access_time'] + df['egress_time'])

    grouped = df.groupby(PAIR_KEY, sort=True).agg(
        mean_total_time=('total_time', 'mean'),
        mean_walk_time=('walk_time', 'mean'),
        mean_transfer_time=('transfer_time', 'mean'),
        n_departures=('total_time', 'size'),
    ).reset_index()

    grouped['origin_destination'] = origin_destination_label(grouped['from_id'], grouped['to_id'])

    return grouped[AGGREGATED_COLUMNS]


def relative_change(after: pd.Series, before: pd.Series) -> pd.Series:
    """
    Relative change (after - before) / |before|.

    A zero baseline gives 0.0 when the value did not change and
    +/-inf otherwise. Missing values on either side stay missing.

    Args:
        after: Values in the "after" scenario
        before: Values in the "before" scenario

    Returns:
        Series of relative changes
    """
    after = after.astype(float)
    before = before.astype(float)

    with np.errstate(divide='ignore', invalid='ignore'):
        change = (after - before) / before.abs()

    unchanged_at_zero = (before == 0) & (after == 0)
    return change.mask(unchanged_at_zero, 0.0)


def compare_scenarios(before: pd.DataFrame, after: pd.DataFrame) -> pd.DataFrame:
    """
    Join the aggregated scenarios and compute relative changes.

    Every pair present in "before" is kept. Pairs only in "after" are
    dropped, and pairs infeasible in "after" keep missing after-fields.

    Args:
        before: Aggregated pairs for the "before" scenario
        after: Aggregated pairs for the "after" scenario

    Returns:
        DataFrame with one row per "before" pair
    """
    left = before[PAIR_KEY + ['origin_destination'] + MEAN_COLUMNS]
    right = after[PAIR_KEY + MEAN_COLUMNS]

    comparison = left.merge(
        right, on=PAIR_KEY, how='left',
        suffixes=('_before', '_after'), validate='one_to_one'
    )

    undefined = []
    for change_col, metric in CHANGE_COLUMNS.items():
        before_col, after_col = f"{metric}_before", f"{metric}_after"
        comparison[change_col] = relative_change(comparison[after_col], comparison[before_col])
        infinite = np.isinf(comparison[change_col])
        undefined.extend(
            f"{od} ({change_col})" for od in comparison.loc[infinite, 'origin_destination']
        )

    if undefined:
        warnings.warn(f"Relative change is infinite for a zero baseline: {undefined}")

    columns = PAIR_KEY + ['origin_destination']
    for change_col, metric in CHANGE_COLUMNS.items():
        columns += [f"{metric}_before", f"{metric}_after", change_col]

    return comparison[columns]


def summarize_comparison(comparison: pd.DataFrame) -> Dict:
    """
    Headline numbers for the comparison table.

    Args:
        comparison: Output of compare_scenarios

    Returns:
        Dictionary of summary statistics
    """
    feasible_after = comparison['mean_total_time_after'].notna()
    finite_change = comparison.loc[
        feasible_after & np.isfinite(comparison['change_total']), 'change_total'
    ]

    return {
        'pairs_compared': int(len(comparison)),
        'pairs_infeasible_after': int((~feasible_after).sum()),
        'pairs_faster': int((comparison['change_total'] < 0).sum()),
        'pairs_slower': int((comparison['change_total'] > 0).sum()),
        'mean_total_time_before': float(comparison['mean_total_time_before'].mean())
        if len(comparison) else None,
        'mean_total_time_after': float(comparison['mean_total_time_after'].mean())
        if feasible_after.any() else None,
        'mean_change_total': float(finite_change.mean()) if not finite_change.empty else None,
    }
