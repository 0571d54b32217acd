"""Shared fixtures: tiny co-registered grids and zones in an equal-area CRS."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import geopandas as gpd
import pytest
from rasterio.crs import CRS
from rasterio.transform import from_origin
from shapely.geometry import box

from suitability_analysis import EnvironmentalField


ALBERS = CRS.from_epsg(5070)
CELL_M = 1000.0


def make_field(values, name, units=None, crs=ALBERS, cell=CELL_M, origin=(0.0, 2000.0)):
    data = np.asarray(values, dtype=np.float64)
    return EnvironmentalField(
        data=data,
        transform=from_origin(origin[0], origin[1], cell, cell),
        crs=crs,
        nodata=None,
        name=name,
        units=units,
    )


@pytest.fixture
def scenario_fields():
    """2x2 grid: temperature (degC) and signed depth (m), 1 km² cells."""
    return {
        'sst': make_field([[10.0, 15.0], [25.0, 35.0]], 'sst', units='degC'),
        'depth': make_field([[-10.0, -50.0], [-80.0, 5.0]], 'depth', units='m_depth'),
    }


@pytest.fixture
def scenario_ranges():
    return {
        'sst': (11.0, 30.0, 'degC'),
        'depth': (-70.0, 0.0, 'm_depth'),
    }


@pytest.fixture
def whole_grid_zone():
    return gpd.GeoDataFrame(
        {'rgn': ['Whole'], 'area_km2': [4.0]},
        geometry=[box(0, 0, 2000, 2000)],
        crs=ALBERS,
    )


@pytest.fixture
def split_zones():
    """West column, east column, and one zone far off the grid (no area column)."""
    return gpd.GeoDataFrame(
        {'rgn': ['West', 'East', 'Offshore']},
        geometry=[
            box(0, 0, 1000, 2000),
            box(1000, 0, 2000, 2000),
            box(50_000, 50_000, 52_000, 52_000),
        ],
        crs=ALBERS,
    )
