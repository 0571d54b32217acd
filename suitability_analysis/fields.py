"""
Gridded Field Types for Marine Suitability Analysis
====================================================

Small value types shared by the loading and evaluation modules:

- EnvironmentalField: a 2-D raster band plus its georeferencing
- ToleranceRange: a half-open [min, max) interval with optional units

Also computes per-cell area in km² so zone statistics are area-weighted
rather than cell counts. Geographic grids get a latitude-dependent cell
area; equal-area projections get a constant one, and other projections are
corrected by their areal scale factor.
"""

from dataclasses import dataclass, replace
from typing import NamedTuple, Optional

import numpy as np
from pyproj import CRS as ProjCRS, Proj, Transformer
from rasterio.crs import CRS
from rasterio.transform import array_bounds

try:
    from .config import EARTH_RADIUS_KM, normalize_units
except ImportError:
    from config import EARTH_RADIUS_KM, normalize_units


# ============================================================================
# ENVIRONMENTAL FIELD
# ============================================================================

@dataclass(frozen=True, eq=False)
class EnvironmentalField:
    """
    A single-band raster held in memory.

    Attributes
    ----------
    data : np.ndarray
        2-D array of samples (rows, cols)
    transform : affine.Affine
        Pixel-to-CRS transform (north-up)
    crs : rasterio.crs.CRS or None
        Anything CRS.from_user_input accepts is converted on construction
    nodata : float or None
        Sentinel marking missing samples
    name : str
    units : str or None
        Units of the values in `data` (e.g. 'degC', 'm_depth')
    """
    data: np.ndarray
    transform: object
    crs: object = None
    nodata: Optional[float] = None
    name: str = 'field'
    units: Optional[str] = None

    def __post_init__(self):
        if np.ndim(self.data) != 2:
            raise ValueError(f"Field '{self.name}' must be 2-D, got shape {np.shape(self.data)}")
        if self.crs is not None and not isinstance(self.crs, CRS):
            object.__setattr__(self, 'crs', CRS.from_user_input(self.crs))
        object.__setattr__(self, 'units', normalize_units(self.units))

    @property
    def shape(self):
        return self.data.shape

    @property
    def resolution(self):
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def bounds(self):
        """(west, south, east, north) in CRS units."""
        rows, cols = self.shape
        return array_bounds(rows, cols, self.transform)

    def masked(self):
        """
        Float copy of the data with NoData and non-finite samples as NaN.
        """
        values = np.array(self.data, dtype=np.float64, copy=True)
        if self.nodata is not None and not np.isnan(self.nodata):
            values[values == self.nodata] = np.nan
        values[~np.isfinite(values)] = np.nan
        return values

    def with_data(self, data, **changes):
        """New field on the same grid holding `data`."""
        return replace(self, data=data, **changes)

    def grid_mismatches(self, other):
        """
        Describe how the grid of `other` differs from this one.

        Returns
        -------
        list of str
            Empty when both fields share shape, transform, and CRS.
        """
        problems = []
        if self.shape != other.shape:
            problems.append(f"shape {self.shape} != {other.shape}")
        if not self.transform.almost_equals(other.transform):
            problems.append(f"transform {tuple(self.transform)[:6]} != {tuple(other.transform)[:6]}")
        if not _same_crs(self.crs, other.crs):
            problems.append(f"crs {self.crs} != {other.crs}")
        return problems

    def same_grid(self, other):
        return not self.grid_mismatches(other)

    def __repr__(self):
        return (f"EnvironmentalField(name={self.name!r}, shape={self.shape}, "
                f"crs={self.crs}, units={self.units!r})")


def _same_crs(crs_a, crs_b):
    if crs_a is None or crs_b is None:
        return crs_a is None and crs_b is None
    return ProjCRS.from_user_input(crs_a) == ProjCRS.from_user_input(crs_b)


# ============================================================================
# TOLERANCE RANGE
# ============================================================================

class ToleranceRange(NamedTuple):
    """Half-open interval [min, max) of suitable values."""
    min: float
    max: float
    units: Optional[str] = None

    def contains(self, values):
        """Boolean array, True where min <= value < max. NaN is never inside."""
        values = np.asarray(values, dtype=np.float64)
        with np.errstate(invalid='ignore'):
            return (values >= self.min) & (values < self.max)

    def widen(self, lower=0.0, upper=0.0):
        return ToleranceRange(self.min - lower, self.max + upper, self.units)

    def __str__(self):
        units = f" {self.units}" if self.units else ""
        return f"[{self.min:g}, {self.max:g}){units}"


def as_tolerance_range(value):
    """
    Normalize a ToleranceRange, (min, max) or (min, max, units) tuple.

    Raises
    ------
    ValueError
        If min > max or the value cannot be interpreted as a range.
        min == max is allowed and matches nothing.
    """
    if isinstance(value, ToleranceRange):
        rng = value
    else:
        try:
            items = tuple(value)
        except TypeError:
            raise ValueError(f"Cannot interpret {value!r} as a tolerance range")
        if len(items) not in (2, 3):
            raise ValueError(f"Tolerance range needs (min, max[, units]), got {value!r}")
        rng = ToleranceRange(float(items[0]), float(items[1]),
                             items[2] if len(items) == 3 else None)

    if np.isnan(rng.min) or np.isnan(rng.max):
        raise ValueError(f"Tolerance range bounds must be numbers, got {rng}")
    if rng.min > rng.max:
        raise ValueError(f"Tolerance range minimum exceeds maximum: {rng}")
    return rng._replace(units=normalize_units(rng.units))


# ============================================================================
# CELL AREA
# ============================================================================

# Projection methods whose cells cover equal ground area everywhere
EQUAL_AREA_METHODS = (
    'equal area',
    'equal earth',
    'mollweide',
    'sinusoidal',
    'eckert iv',
    'eckert vi',
    'goode homolosine',
)


def is_equal_area(crs):
    """True when a projected CRS preserves area (checked by projection method name)."""
    crs = ProjCRS.from_user_input(crs)
    operation = crs.coordinate_operation
    if crs.is_geographic or operation is None:
        return False
    method = operation.method_name.lower()
    return any(name in method for name in EQUAL_AREA_METHODS)


def compute_cell_areas(field, earth_radius_km=EARTH_RADIUS_KM):
    """
    Area of every cell of a field's grid in km².

    Parameters
    ----------
    field : EnvironmentalField
    earth_radius_km : float
        Sphere radius used for geographic grids

    Returns
    -------
    np.ndarray
        Array with the field's shape

    Notes
    -----
    For a geographic CRS the area of a cell bounded by latitudes phi1, phi2
    and a longitude span dlon (radians) on a sphere is
        R² * dlon * |sin(phi2) - sin(phi1)|
    so rows near the poles shrink.

    Equal-area projections get a constant cell area. Any other projection
    (Mercator, UTM, ...) divides the nominal cell area by the areal scale
    factor at each cell centre, so a Web Mercator cell at 60°N counts a
    quarter of its nominal size.
    """
    transform = field.transform
    rows, cols = field.shape

    if transform.b != 0 or transform.d != 0:
        raise ValueError("Rotated grids are not supported for cell area calculation")
    if field.crs is None:
        raise ValueError(
            f"Field '{field.name}' has no CRS; pass cell_area_km2 explicitly"
        )

    crs = ProjCRS.from_user_input(field.crs)

    if crs.is_geographic:
        row_edges = transform.f + transform.e * np.arange(rows + 1)
        lat_edges = np.radians(np.clip(row_edges, -90.0, 90.0))
        dlon = np.radians(abs(transform.a))
        row_area = (earth_radius_km ** 2) * dlon * np.abs(np.diff(np.sin(lat_edges)))
        return np.repeat(row_area[:, np.newaxis], cols, axis=1)

    unit_factor = crs.axis_info[0].unit_conversion_factor if crs.axis_info else 1.0
    cell_area_km2 = abs(transform.a * transform.e) * unit_factor ** 2 / 1e6
    if is_equal_area(crs):
        return np.full((rows, cols), cell_area_km2, dtype=np.float64)

    return cell_area_km2 / _areal_scale(crs, transform, rows, cols)


def _areal_scale(crs, transform, rows, cols):
    """Projection areal scale factor at every cell centre."""
    col_idx, row_idx = np.meshgrid(np.arange(cols) + 0.5, np.arange(rows) + 0.5)
    x, y = transform * (col_idx, row_idx)

    to_geographic = Transformer.from_crs(crs, crs.geodetic_crs, always_xy=True)
    lon, lat = to_geographic.transform(np.ravel(x), np.ravel(y))

    factors = Proj(crs).get_factors(lon, lat)
    return np.asarray(factors.areal_scale, dtype=np.float64).reshape(rows, cols)
