"""
Data Loading Module for Marine Suitability Analysis
====================================================

This module handles loading data from various sources:
- GeoTIFF / any GDAL raster for environmental fields
- Shapefile / GeoPackage for maritime zones

Key Features:
- NoData value handling
- Explicit unit conversion (Kelvin -> Celsius, elevation -> signed depth)
- Co-registration of one raster onto another's grid
- Equal-area zone areas

Dependencies:
- geopandas
- rasterio
- numpy
"""

import os
import warnings
import numpy as np
import geopandas as gpd
import rasterio
from rasterio.errors import RasterioIOError
from rasterio.warp import reproject, Resampling
from pathlib import Path

# Handle imports for both package and direct execution
try:
    from .config import (
        RASTERS, RASTER_METADATA, ZONES_PATH, ZONES_LAYER, ZONE_COLS,
        TARGET_CRS, DEFAULT_CRS, KELVIN_OFFSET, normalize_units
    )
    from .fields import EnvironmentalField
except ImportError:
    from config import (
        RASTERS, RASTER_METADATA, ZONES_PATH, ZONES_LAYER, ZONE_COLS,
        TARGET_CRS, DEFAULT_CRS, KELVIN_OFFSET, normalize_units
    )
    from fields import EnvironmentalField


def get_raster_nodata(raster_name_or_path):
    """
    Get the NoData value for a raster from RASTER_METADATA.

    Parameters
    ----------
    raster_name_or_path : str
        Either a key from RASTERS dict (e.g., 'depth') or a configured path

    Returns
    -------
    float or None
        NoData value from metadata, or None if not configured
    """
    for name, paths in RASTERS.items():
        if isinstance(paths, str):
            paths = [paths]
        if raster_name_or_path == name or raster_name_or_path in paths:
            return RASTER_METADATA.get(name, {}).get('nodata')
    return None


# ============================================================================
# RASTER DATA LOADING
# ============================================================================

def get_raster_info(raster_path):
    """
    Get information about a raster file without loading data.

    Parameters
    ----------
    raster_path : str

    Returns
    -------
    dict
        Raster metadata including CRS, dimensions, resolution, nodata value
    """
    with rasterio.open(raster_path) as src:
        transform = src.transform
        return {
            'path': str(raster_path),
            'width': src.width,
            'height': src.height,
            'crs': src.crs,
            'is_geographic': bool(src.crs and src.crs.is_geographic),
            'bounds': src.bounds,
            'transform': transform,
            'pixel_width': abs(transform.a),
            'pixel_height': abs(transform.e),
            'nodata': src.nodata,
            'dtype': str(src.dtypes[0]),
            'count': src.count,
        }


def load_field(raster_path, name=None, units=None, nodata=None, band=1, verbose=True):
    """
    Load one raster band as an EnvironmentalField.

    Parameters
    ----------
    raster_path : str
    name : str, optional
        Variable name (defaults to the file stem)
    units : str, optional
        Units of the values on disk
    nodata : float, optional
        Override NoData; otherwise RASTER_METADATA, then the file's own value
    band : int
        Band number to read (1-indexed)

    Returns
    -------
    EnvironmentalField
        Float data with NoData replaced by NaN
    """
    if not os.path.exists(raster_path):
        raise FileNotFoundError(f"Raster not found: {raster_path}")

    name = name or Path(raster_path).stem
    if nodata is None:
        nodata = get_raster_nodata(raster_path)

    if verbose:
        print(f"Loading raster: {raster_path}")

    with rasterio.open(raster_path) as src:
        data = src.read(band)
        transform = src.transform
        crs = src.crs
        if nodata is None:
            nodata = src.nodata

    field = EnvironmentalField(data=data, transform=transform, crs=crs,
                               nodata=nodata, name=name, units=units)
    values = field.masked()

    if verbose:
        valid_count = int(np.sum(~np.isnan(values)))
        print(f"  Shape: {data.shape}")
        print(f"  CRS: {crs}")
        print(f"  NoData value: {nodata}")
        print(f"  Valid pixels: {valid_count:,} ({100*valid_count/max(values.size, 1):.1f}%)")

    return field.with_data(values, nodata=np.nan)


def load_field_mean(raster_paths, name, units=None, verbose=True):
    """
    Per-cell mean of several co-registered rasters (e.g. yearly SST).

    NaN cells are ignored; a cell missing in every input stays NaN.
    """
    raster_paths = list(raster_paths)
    if not raster_paths:
        raise ValueError(f"No rasters given for '{name}'")

    if verbose:
        print(f"Averaging {len(raster_paths)} rasters into '{name}'...")

    fields = [load_field(path, name=name, units=units, verbose=verbose)
              for path in raster_paths]
    reference = fields[0]
    for path, other in zip(raster_paths[1:], fields[1:]):
        problems = reference.grid_mismatches(other)
        if problems:
            raise ValueError(f"Raster {path} does not match {raster_paths[0]}: {', '.join(problems)}")

    stack = np.stack([f.data for f in fields])
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', category=RuntimeWarning)
        mean = np.nanmean(stack, axis=0)

    return reference.with_data(mean)


# ============================================================================
# UNIT CONVERSION
# ============================================================================

def _kelvin_to_celsius(values):
    return values - KELVIN_OFFSET


def _celsius_to_kelvin(values):
    return values + KELVIN_OFFSET


def _elevation_to_depth(values):
    # Signed depth keeps the elevation sign: below sea level is negative.
    return values


UNIT_CONVERSIONS = {
    ('K', 'degC'): _kelvin_to_celsius,
    ('degC', 'K'): _celsius_to_kelvin,
    ('m_elevation', 'm_depth'): _elevation_to_depth,
}


def convert_units(field, to_units):
    """
    Convert a field's values to new units.

    Parameters
    ----------
    field : EnvironmentalField
        Must declare its current units
    to_units : str
        Target units (see UNIT_CONVERSIONS)

    Returns
    -------
    EnvironmentalField
    """
    to_units = normalize_units(to_units)
    if field.units == to_units:
        return field
    if field.units is None:
        raise ValueError(f"Field '{field.name}' has no units; cannot convert to {to_units}")

    convert = UNIT_CONVERSIONS.get((field.units, to_units))
    if convert is None:
        raise ValueError(
            f"No conversion from {field.units} to {to_units}. "
            f"Available: {list(UNIT_CONVERSIONS.keys())}"
        )
    return field.with_data(convert(field.masked()), units=to_units, nodata=np.nan)


# ============================================================================
# CO-REGISTRATION
# ============================================================================

def check_field_alignment(fields, verbose=True):
    """
    Check if multiple fields share CRS, resolution, and grid.

    Parameters
    ----------
    fields : dict
        Name -> EnvironmentalField

    Returns
    -------
    dict
        Alignment report
    """
    if verbose:
        print("Checking field alignment...")

    names = list(fields)
    if len(names) < 2:
        return {'aligned': True, 'message': 'Not enough fields to compare'}

    reference = fields[names[0]]
    mismatches = {}
    for name in names[1:]:
        problems = reference.grid_mismatches(fields[name])
        if problems:
            mismatches[name] = problems

    report = {
        'aligned': not mismatches,
        'reference': names[0],
        'unique_crs': list({str(f.crs) for f in fields.values()}),
        'unique_resolutions': list({f.resolution for f in fields.values()}),
        'mismatches': mismatches,
    }

    if verbose:
        for name in names:
            status = "✗" if name in mismatches else "✓"
            print(f"  {status} {name}: {fields[name].shape}, {fields[name].crs}")
        if mismatches:
            print(f"\n  WARNING: Fields not aligned with '{names[0]}'")
            print(f"  Recommendation: align_field(field, fields['{names[0]}'])")

    return report


def align_field(field, reference, resampling=Resampling.nearest, verbose=True):
    """
    Resample and reproject a field onto the grid of a reference field.

    Parameters
    ----------
    field : EnvironmentalField
        Field to move (e.g. fine bathymetry)
    reference : EnvironmentalField
        Field whose grid is the target (e.g. SST)
    resampling : rasterio.warp.Resampling
        Nearest neighbour by default, so values are never blended

    Returns
    -------
    EnvironmentalField
        Same name/units as `field`, on the reference grid
    """
    if field.same_grid(reference):
        return field

    if verbose:
        print(f"Aligning '{field.name}' to '{reference.name}' grid...")
        print(f"  From: {field.shape} @ {field.resolution}")
        print(f"  To:   {reference.shape} @ {reference.resolution}")

    destination = np.full(reference.shape, np.nan, dtype=np.float64)
    reproject(
        source=field.masked(),
        destination=destination,
        src_transform=field.transform,
        src_crs=field.crs,
        src_nodata=np.nan,
        dst_transform=reference.transform,
        dst_crs=reference.crs,
        dst_nodata=np.nan,
        resampling=resampling,
    )

    return EnvironmentalField(data=destination, transform=reference.transform,
                              crs=reference.crs, nodata=np.nan,
                              name=field.name, units=field.units)


# ============================================================================
# ZONE LOADING
# ============================================================================

def load_zones(zones_path=ZONES_PATH, layer=ZONES_LAYER, target_crs=None,
               id_col=None, area_col=None, area_crs=TARGET_CRS, verbose=True):
    """
    Load maritime zone polygons.

    Parameters
    ----------
    zones_path : str
        Path to shapefile or geopackage
    layer : str, optional
        Layer name for multi-layer sources
    target_crs : str or CRS, optional
        Reproject zones to this CRS (e.g. the raster CRS)
    id_col : str, optional
        Zone identifier column (default ZONE_COLS['id'])
    area_col : str, optional
        Total area column in km² (default ZONE_COLS['area']); computed in
        `area_crs` if missing
    area_crs : str
        Equal-area CRS for area calculation

    Returns
    -------
    GeoDataFrame
    """
    id_col = id_col or ZONE_COLS['id']
    area_col = area_col or ZONE_COLS['area']

    if verbose:
        print(f"Loading zones: {zones_path}")
        if layer:
            print(f"  Layer: {layer}")

    if not os.path.exists(zones_path):
        raise FileNotFoundError(f"Zones file not found: {zones_path}")

    if layer:
        zones = gpd.read_file(zones_path, layer=layer)
    else:
        zones = gpd.read_file(zones_path)

    if id_col not in zones.columns:
        raise ValueError(f"Zone id column '{id_col}' not found. Available: {list(zones.columns)}")

    if zones.crs is None:
        warnings.warn(f"No CRS defined for {zones_path}. Assuming {DEFAULT_CRS}")
        zones = zones.set_crs(DEFAULT_CRS)

    if area_col not in zones.columns:
        if verbose:
            print(f"  Computing '{area_col}' in {area_crs}")
        zones[area_col] = zones.geometry.to_crs(area_crs).area / 1e6

    if target_crs is not None and zones.crs != target_crs:
        if verbose:
            print(f"  Reprojecting to: {target_crs}")
        zones = zones.to_crs(target_crs)

    if verbose:
        print(f"  Zones: {len(zones)}")
        print(f"  CRS: {zones.crs}")
        print(f"  Total area: {zones[area_col].sum():,.0f} km²")

    return zones


# ============================================================================
# OUTPUT
# ============================================================================

def write_field(field, output_path, nodata=-9999.0):
    """
    Write a field to a single-band GeoTIFF (LZW compressed).

    NaN cells are written as `nodata`.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    data = field.masked().astype(np.float32)
    data[np.isnan(data)] = nodata

    profile = {
        'driver': 'GTiff',
        'height': field.shape[0],
        'width': field.shape[1],
        'count': 1,
        'dtype': 'float32',
        'crs': field.crs,
        'transform': field.transform,
        'nodata': nodata,
        'compress': 'lzw',
    }
    with rasterio.open(output_path, 'w', **profile) as dst:
        dst.write(data, 1)

    return str(output_path)


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def quick_data_check():
    """
    Perform quick check of all data sources.
    Useful for initial validation that everything is accessible.
    """
    print("\n" + "=" * 60)
    print("DATA AVAILABILITY CHECK")
    print("=" * 60)

    print("\n[1] Rasters:")
    for name, paths in RASTERS.items():
        if isinstance(paths, str):
            paths = [paths]
        for path in paths:
            if os.path.exists(path):
                try:
                    info = get_raster_info(path)
                    print(f"  ✓ {name}: {info['width']}x{info['height']}, {info['crs']}")
                except RasterioIOError as e:
                    print(f"  ? {name}: exists but error reading - {e}")
            else:
                print(f"  ✗ {name}: NOT FOUND ({path})")

    print("\n[2] Zones:")
    if os.path.exists(ZONES_PATH):
        print(f"  ✓ Found: {ZONES_PATH}")
    else:
        print(f"  ✗ NOT FOUND: {ZONES_PATH}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    quick_data_check()
