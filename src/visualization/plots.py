"""
Visualization Module for the Transit Redesign Comparison Project

Static figures of the travel time change between scenarios.
"""

import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

sys.path.append(str(Path(__file__).parent.parent))
from config import FIGURES_DIR, VIZ_CONFIG
from visualization.report import RenderError

# Set default style
plt.style.use(VIZ_CONFIG['style'])


def setup_figure(figsize: tuple = None, dpi: int = None):
    """
    Create and configure a figure with default settings.

    Args:
        figsize: Figure size (width, height)
        dpi: Dots per inch

    Returns:
        Figure and Axes objects
    """
    if figsize is None:
        figsize = VIZ_CONFIG['figure_size']
    if dpi is None:
        dpi = VIZ_CONFIG['dpi']

    fig, ax = plt.subplots(figsize=figsize, dpi=dpi)
    return fig, ax


def save_figure(fig, filename: str, output_dir: Path = None) -> Path:
    """
    Save figure to file.

    Args:
        fig: Figure to save
        filename: Output filename
        output_dir: Output directory

    Returns:
        Path of the saved figure
    """
    if output_dir is None:
        output_dir = FIGURES_DIR
    output_dir.mkdir(parents=True, exist_ok=True)

    filepath = output_dir / filename
    try:
        fig.savefig(filepath, bbox_inches='tight', facecolor='white')
    except (OSError, ValueError) as e:
        raise RenderError(f"Could not save figure {filename}: {e}") from e
    finally:
        plt.close(fig)
    print(f"  Saved: {filepath}")
    return filepath


def plot_travel_time_change(comparison: pd.DataFrame,
                            output_dir: Path = None) -> Path:
    """
    Plot the relative change in total travel time per origin/destination pair.

    Pairs without a finite change (infeasible after, zero baseline) are left out.

    Args:
        comparison: Output of compare_scenarios
        output_dir: Output directory
    """
    data = comparison[np.isfinite(comparison['change_total'].astype(float))]
    data = data.sort_values('change_total')

    height = max(4, 0.3 * len(data))
    fig, ax = setup_figure(figsize=(12, height))

    changes = data['change_total'] * 100
    colors = ['#2ecc71' if c < 0 else '#e74c3c' for c in changes]

    ax.barh(data['origin_destination'], changes, color=colors, edgecolor='black', alpha=0.8)
    ax.axvline(0, color='black', linewidth=1)
    ax.set_xlabel('Change in Total Travel Time (%)')
    ax.set_ylabel('Origin / Destination')
    ax.set_title('Change in Transit Travel Time After the Redesign')

    plt.tight_layout()
    return save_figure(fig, 'travel_time_change.png', output_dir)


def plot_before_after_scatter(comparison: pd.DataFrame,
                              output_dir: Path = None) -> Path:
    """
    Scatter mean total travel time before vs after, one point per pair.

    Args:
        comparison: Output of compare_scenarios
        output_dir: Output directory
    """
    data = comparison.dropna(subset=['mean_total_time_before', 'mean_total_time_after'])

    fig, ax = setup_figure(figsize=(8, 8))

    ax.scatter(data['mean_total_time_before'], data['mean_total_time_after'],
               alpha=0.7, edgecolors='black', s=50)

    if not data.empty:
        upper = max(data['mean_total_time_before'].max(), data['mean_total_time_after'].max())
        ax.plot([0, upper], [0, upper], 'r--', alpha=0.8, label='No change')
        ax.legend()

    ax.set_xlabel('Mean Travel Time Before (minutes)')
    ax.set_ylabel('Mean Travel Time After (minutes)')
    ax.set_title('Travel Time per Origin/Destination Pair')

    plt.tight_layout()
    return save_figure(fig, 'travel_time_before_after.png', output_dir)


def generate_all_visualizations(comparison: pd.DataFrame, output_dir: Path = None) -> list:
    """
    Generate all static figures for the comparison.

    Args:
        comparison: Output of compare_scenarios
        output_dir: Output directory

    Returns:
        List of saved figure paths
    """
    if output_dir is None:
        output_dir = FIGURES_DIR
    output_dir.mkdir(parents=True, exist_ok=True)

    print("\n[1/2] Travel time change by pair...")
    change_path = plot_travel_time_change(comparison, output_dir)

    print("\n[2/2] Before vs after scatter...")
    scatter_path = plot_before_after_scatter(comparison, output_dir)

    return [change_path, scatter_path]
