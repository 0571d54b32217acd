"""
Suitability Module for Marine Suitability Analysis
====================================================

This module classifies where a species can be farmed - the core of the analysis.

Core Concept:
    Each environmental variable (temperature, depth, ...) is reclassified
    against the species' tolerance range. A cell is suitable only when it
    passes EVERY variable:

    Suitability = reclass(sst) × reclass(depth) × ...

    with reclass(v) = 1 inside [min, max) and NaN elsewhere, so a single
    failing variable removes the cell.

    Suitable area per zone is then the sum of per-cell area (km²) of the
    suitable cells whose centre falls inside the zone polygon.

This module provides:
- Reclassification of single fields
- Composite (conjunction) suitability grid
- Area-weighted per-zone summary
- evaluate_suitability(): the full workflow for one species
- evaluate_species_batch(): many species against the same fields

All functions are pure: inputs are never modified and nothing is cached
between calls, so independent calls may run in parallel.
"""

import warnings
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd
from rasterio.features import geometry_mask

try:
    from .config import ZONE_COLS, TARGET_CRS, MAX_WORKERS
    from .fields import as_tolerance_range, compute_cell_areas
except ImportError:
    from config import ZONE_COLS, TARGET_CRS, MAX_WORKERS
    from fields import as_tolerance_range, compute_cell_areas


SUITABLE = 1.0
UNSUITABLE = np.nan

SUMMARY_COLUMNS = ['zone_id', 'suitable_area_km2', 'total_area_km2', 'percent_suitable']


# ============================================================================
# ERRORS
# ============================================================================

class SuitabilityError(ValueError):
    """Base class for invalid suitability inputs."""


class ShapeMismatchError(SuitabilityError):
    """Input fields do not share grid shape, transform, or CRS."""


class MissingRangeError(SuitabilityError):
    """Fields and tolerance ranges do not name the same variables."""


class UnitMismatchError(SuitabilityError):
    """A field and its tolerance range declare different units."""


# ============================================================================
# INPUT VALIDATION
# ============================================================================

def validate_inputs(fields, ranges):
    """
    Check evaluation preconditions and normalize the ranges.

    Parameters
    ----------
    fields : dict
        Variable name -> EnvironmentalField
    ranges : dict
        Variable name -> ToleranceRange or (min, max[, units]) tuple

    Returns
    -------
    dict
        Variable name -> ToleranceRange, in the order of `fields`

    Raises
    ------
    MissingRangeError, ShapeMismatchError, UnitMismatchError
    """
    if not fields:
        raise MissingRangeError("At least one environmental field is required")

    missing = [name for name in fields if name not in ranges]
    extra = [name for name in ranges if name not in fields]
    if missing or extra:
        parts = []
        if missing:
            parts.append(f"no tolerance range for field(s) {missing}")
        if extra:
            parts.append(f"no field for range(s) {extra}")
        raise MissingRangeError("; ".join(parts))

    names = list(fields)
    reference = fields[names[0]]
    for name in names[1:]:
        problems = reference.grid_mismatches(fields[name])
        if problems:
            raise ShapeMismatchError(
                f"Field '{name}' is not co-registered with '{names[0]}': "
                + ", ".join(problems)
            )

    normalized = {}
    for name in names:
        rng = as_tolerance_range(ranges[name])
        field_units = fields[name].units
        if rng.units and field_units and rng.units != field_units:
            raise UnitMismatchError(
                f"Field '{name}' is in {field_units} but its range is in {rng.units}"
            )
        normalized[name] = rng

    return normalized


# ============================================================================
# RECLASSIFICATION
# ============================================================================

def reclassify_field(field, tolerance):
    """
    Reclassify one field to 1 (inside the range) or NaN (outside or missing).

    Parameters
    ----------
    field : EnvironmentalField
    tolerance : ToleranceRange or tuple
        Half-open [min, max): a value equal to min is suitable, equal to max is not

    Returns
    -------
    EnvironmentalField
        float32 grid on the same georeferencing
    """
    tolerance = as_tolerance_range(tolerance)
    inside = tolerance.contains(field.masked())
    data = np.where(inside, SUITABLE, UNSUITABLE).astype(np.float32)
    return field.with_data(data, name=f"{field.name}_suitable", units=None, nodata=np.nan)


def combine_suitability(grids):
    """
    Elementwise conjunction of 1/NaN suitability grids.

    Multiplying 1/NaN values keeps a cell at 1 only if it is 1 in every grid.
    """
    grids = list(grids)
    if not grids:
        raise ValueError("No suitability grids to combine")

    composite = np.ones(grids[0].shape, dtype=np.float32)
    for grid in grids:
        composite = composite * grid.data
    return grids[0].with_data(composite.astype(np.float32), name='suitability',
                              units=None, nodata=np.nan)


def suitable_mask(suitability):
    """Boolean view of a suitability grid (True = suitable)."""
    data = np.asarray(suitability.data)
    with np.errstate(invalid='ignore'):
        return data == SUITABLE


# ============================================================================
# ZONE STATISTICS
# ============================================================================

def compute_zone_total_areas(zones, area_col=None, target_crs=TARGET_CRS):
    """
    Total area (km²) of each zone, in zone order.

    Uses the precomputed `area_col` when present; otherwise measures the
    geometry in the equal-area `target_crs`.
    """
    area_col = area_col or ZONE_COLS['area']
    if area_col in zones.columns:
        return zones[area_col].astype(float).to_numpy()

    if zones.crs is None:
        measured = zones.geometry
    else:
        measured = zones.geometry.to_crs(target_crs)
    return (measured.area / 1e6).to_numpy()


def _resolve_cell_areas(suitability, cell_area_km2):
    if cell_area_km2 is None:
        return compute_cell_areas(suitability)

    areas = np.asarray(cell_area_km2, dtype=np.float64)
    if areas.ndim == 0:
        return np.full(suitability.shape, float(areas))
    if areas.shape != suitability.shape:
        raise ShapeMismatchError(
            f"cell_area_km2 shape {areas.shape} does not match grid {suitability.shape}"
        )
    return areas


def _zones_with_crs(zones, suitability):
    """Zones whose CRS can be matched against the grid's."""
    if zones.crs is None and suitability.crs is not None:
        warnings.warn(f"No CRS defined for zones. Assuming grid CRS {suitability.crs}")
        return zones.set_crs(suitability.crs)
    if zones.crs is not None and suitability.crs is None:
        raise ShapeMismatchError(
            f"Zones are in {zones.crs} but the suitability grid has no CRS"
        )
    return zones


def summarize_zones(suitability, zones, zone_id_col=None, zone_area_col=None,
                    cell_area_km2=None, target_crs=TARGET_CRS, verbose=True):
    """
    Suitable area and percent suitable for each zone.

    Parameters
    ----------
    suitability : EnvironmentalField
        Composite 1/NaN grid
    zones : GeoDataFrame
        Zone polygons with an identifier column
    zone_id_col : str, optional
        Identifier column (default ZONE_COLS['id'])
    zone_area_col : str, optional
        Precomputed total-area column in km² (default ZONE_COLS['area'])
    cell_area_km2 : float or np.ndarray, optional
        Override per-cell area; computed from the grid CRS if None
    target_crs : str
        Equal-area CRS for measuring zones without an area column

    Returns
    -------
    DataFrame
        Columns: zone_id, suitable_area_km2, total_area_km2, percent_suitable
        One row per zone, in input order.

    Notes
    -----
    A cell belongs to a zone when its centre lies inside the polygon.
    Zones that miss the grid entirely get zero suitable area. Zones without
    a CRS are assumed to share the grid CRS (with a warning); zones with a
    CRS against a grid without one raise ShapeMismatchError.
    """
    zone_id_col = zone_id_col or ZONE_COLS['id']
    if zone_id_col not in zones.columns:
        raise ValueError(f"Zone id column '{zone_id_col}' not found. Available: {list(zones.columns)}")

    zones = _zones_with_crs(zones, suitability)
    total_areas = compute_zone_total_areas(zones, zone_area_col, target_crs)

    zones_on_grid = zones
    if zones.crs is not None:
        zones_on_grid = zones.to_crs(suitability.crs)

    cell_areas = _resolve_cell_areas(suitability, cell_area_km2)
    suitable = suitable_mask(suitability)

    results = []
    for i, (zone_id, geom) in enumerate(zip(zones[zone_id_col], zones_on_grid.geometry)):
        if geom is None or geom.is_empty:
            suitable_area = 0.0
        else:
            inside = geometry_mask([geom], out_shape=suitability.shape,
                                   transform=suitability.transform,
                                   all_touched=False, invert=True)
            suitable_area = float(cell_areas[inside & suitable].sum())

        total_area = float(total_areas[i])
        if total_area > 0:
            percent = suitable_area / total_area * 100
        elif np.isnan(total_area):
            percent = np.nan
        else:
            percent = 0.0

        results.append({
            'zone_id': zone_id,
            'suitable_area_km2': suitable_area,
            'total_area_km2': total_area,
            'percent_suitable': percent,
        })

    summary = pd.DataFrame(results, columns=SUMMARY_COLUMNS)

    if verbose:
        print(f"  Zones summarized: {len(summary)}")
        print(f"  Total suitable area: {summary['suitable_area_km2'].sum():,.1f} km²")

    return summary


# ============================================================================
# FULL WORKFLOW
# ============================================================================

def evaluate_suitability(fields, ranges, zones, zone_id_col=None, zone_area_col=None,
                         cell_area_km2=None, target_crs=TARGET_CRS, verbose=True):
    """
    Classify suitable cells and summarize them by zone.

    Parameters
    ----------
    fields : dict
        Variable name -> EnvironmentalField, all on the same grid
    ranges : dict
        Variable name -> ToleranceRange or (min, max[, units]); same keys as fields
    zones : GeoDataFrame
        Named zone polygons
    zone_id_col, zone_area_col : str, optional
        Zone column names (defaults from ZONE_COLS)
    cell_area_km2 : float or np.ndarray, optional
        Per-cell area override (needed when the grid has no CRS)
    target_crs : str
        Equal-area CRS for zones without a precomputed area
    verbose : bool

    Returns
    -------
    tuple
        (suitability_field, summary_df)

    Raises
    ------
    MissingRangeError
        Field and range names differ
    ShapeMismatchError
        Fields are not co-registered
    UnitMismatchError
        A field and its range declare different units

    Examples
    --------
    >>> grid, summary = evaluate_suitability(
    ...     {'sst': sst, 'depth': depth},
    ...     {'sst': (11, 30, 'degC'), 'depth': (-70, 0, 'm_depth')},
    ...     zones)
    """
    ranges = validate_inputs(fields, ranges)

    if verbose:
        print(f"Evaluating suitability over {len(fields)} variable(s)")
        for name, rng in ranges.items():
            print(f"  {name}: {rng}")

    per_variable = [reclassify_field(fields[name], rng) for name, rng in ranges.items()]
    composite = combine_suitability(per_variable)

    if verbose:
        n_suitable = int(suitable_mask(composite).sum())
        print(f"  Suitable cells: {n_suitable:,} of {composite.data.size:,}")

    summary = summarize_zones(composite, zones, zone_id_col=zone_id_col,
                              zone_area_col=zone_area_col, cell_area_km2=cell_area_km2,
                              target_crs=target_crs, verbose=verbose)
    return composite, summary


def evaluate_species_batch(fields, species_ranges, zones, max_workers=MAX_WORKERS, **kwargs):
    """
    Evaluate several species against the same fields in parallel threads.

    Parameters
    ----------
    fields : dict
        Shared, read-only fields
    species_ranges : dict
        Species name -> ranges mapping accepted by evaluate_suitability()
    zones : GeoDataFrame
    max_workers : int, optional
    **kwargs
        Passed to evaluate_suitability() (verbose defaults to False)

    Returns
    -------
    dict
        Species name -> (suitability_field, summary_df), in input order
    """
    kwargs.setdefault('verbose', False)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            species: executor.submit(evaluate_suitability, fields, ranges, zones, **kwargs)
            for species, ranges in species_ranges.items()
        }
        return {species: future.result() for species, future in futures.items()}
