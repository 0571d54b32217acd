"""
Visualization Module for Marine Suitability Analysis
=====================================================

This module provides plotting functions for:
- Suitability maps with zone outlines
- Per-zone suitable area bar charts
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch

# Handle imports for both package and direct execution
try:
    from .config import PLOT_STYLE, PLOT_PARAMS, COLORMAPS
    from .suitability import suitable_mask
except ImportError:
    from config import PLOT_STYLE, PLOT_PARAMS, COLORMAPS
    from suitability import suitable_mask


# ============================================================================
# PLOT SETUP
# ============================================================================

def setup_plot_style():
    """Apply publication-quality plot settings."""
    try:
        plt.style.use(PLOT_STYLE)
    except OSError:
        plt.style.use('default')
    plt.rcParams.update(PLOT_PARAMS)


def _pretty_name(name):
    return str(name).replace('_', ' ').title()


# ============================================================================
# SUITABILITY MAP
# ============================================================================

def plot_suitability_map(suitability, zones=None, zone_id_col=None, title=None,
                         figsize=(8, 10), save_path=None):
    """
    Map suitable cells, optionally outlined by zones.

    Parameters
    ----------
    suitability : EnvironmentalField
        Composite 1/NaN grid from evaluate_suitability()
    zones : GeoDataFrame, optional
        Zone polygons drawn as outlines (reprojected to the grid CRS)
    zone_id_col : str, optional
        If given, label each zone at a representative point
    title : str, optional
    figsize : tuple
    save_path : str, optional
        If provided, save figure to this path

    Returns
    -------
    tuple
        (fig, ax)
    """
    setup_plot_style()
    fig, ax = plt.subplots(figsize=figsize)

    west, south, east, north = suitability.bounds
    suitable = suitable_mask(suitability)

    cmap = plt.get_cmap(COLORMAPS['suitability'])
    ax.imshow(np.where(suitable, 1.0, np.nan), extent=(west, east, south, north),
              origin='upper', cmap=ListedColormap([cmap(0.75)]),
              vmin=0, vmax=1, interpolation='nearest')

    if zones is not None and len(zones) > 0:
        zones_on_grid = zones
        if zones.crs is not None and suitability.crs is not None:
            zones_on_grid = zones.to_crs(suitability.crs)
        zones_on_grid.boundary.plot(ax=ax, color='black', linewidth=0.8)

        if zone_id_col and zone_id_col in zones_on_grid.columns:
            for zone_id, geom in zip(zones_on_grid[zone_id_col], zones_on_grid.geometry):
                if geom is None or geom.is_empty:
                    continue
                point = geom.representative_point()
                ax.annotate(str(zone_id), (point.x, point.y), fontsize=9,
                            ha='center', va='center')

    n_suitable = int(suitable.sum())
    ax.legend(handles=[Patch(color=cmap(0.75), label=f'Suitable ({n_suitable:,} cells)')],
              loc='lower left')

    ax.set_title(title or 'Suitable Area', fontsize=16)
    ax.set_xlabel('Easting' if suitability.crs and not suitability.crs.is_geographic else 'Longitude')
    ax.set_ylabel('Northing' if suitability.crs and not suitability.crs.is_geographic else 'Latitude')
    ax.set_xlim(west, east)
    ax.set_ylim(south, north)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return fig, ax


# ============================================================================
# ZONE SUMMARY CHART
# ============================================================================

def plot_zone_summary(summary_df, species=None, value='suitable_area_km2',
                      figsize=(10, 6), save_path=None):
    """
    Bar chart of suitable area (or percent) per zone.

    Parameters
    ----------
    summary_df : DataFrame
        Output from summarize_zones() / evaluate_suitability()
    species : str, optional
        Used in the title
    value : str
        'suitable_area_km2' or 'percent_suitable'
    figsize : tuple
    save_path : str, optional

    Returns
    -------
    tuple
        (fig, ax)
    """
    if value not in summary_df.columns:
        raise ValueError(f"Column '{value}' not found. Available: {list(summary_df.columns)}")

    setup_plot_style()
    fig, ax = plt.subplots(figsize=figsize)

    labels = [str(z) for z in summary_df['zone_id']]
    heights = summary_df[value].to_numpy(dtype=float)
    colors = plt.get_cmap(COLORMAPS['zones'])(np.linspace(0, 1, max(len(labels), 1)))

    bars = ax.bar(labels, heights, color=colors[:len(labels)], edgecolor='black', linewidth=0.5)

    # Annotate with the other measure
    for bar, (_, row) in zip(bars, summary_df.iterrows()):
        if value == 'suitable_area_km2':
            text = f"{row['percent_suitable']:.1f}%"
        else:
            text = f"{row['suitable_area_km2']:,.0f} km²"
        ax.annotate(text, (bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    ha='center', va='bottom', fontsize=9)

    ylabel = 'Suitable Area (km²)' if value == 'suitable_area_km2' else 'Suitable Area (%)'
    ax.set_ylabel(ylabel, fontsize=14)
    ax.set_xlabel('Zone', fontsize=14)
    title = 'Suitable Area by Zone'
    if species:
        title = f'{_pretty_name(species)}: {title}'
    ax.set_title(title, fontsize=16)
    ax.grid(True, axis='y', alpha=0.3)
    plt.setp(ax.get_xticklabels(), rotation=30, ha='right')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return fig, ax
