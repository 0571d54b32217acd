import numpy as np
import geopandas as gpd
import pytest
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import box

from suitability_analysis import (
    get_raster_info,
    load_field,
    load_field_mean,
    convert_units,
    align_field,
    check_field_alignment,
    load_zones,
    write_field,
)

from conftest import ALBERS, make_field


def write_tif(path, data, transform, nodata=None, crs=ALBERS):
    data = np.asarray(data, dtype=np.float32)
    with rasterio.open(path, 'w', driver='GTiff', height=data.shape[0],
                       width=data.shape[1], count=1, dtype='float32',
                       crs=crs, transform=transform, nodata=nodata) as dst:
        dst.write(data, 1)
    return str(path)


@pytest.fixture
def grid_transform():
    return from_origin(0, 2000, 1000, 1000)


def test_load_field_masks_nodata(tmp_path, grid_transform):
    path = write_tif(tmp_path / "sst.tif", [[280.0, -9999.0], [290.0, 300.0]],
                     grid_transform, nodata=-9999.0)
    field = load_field(path, name='sst', units='K', verbose=False)

    assert field.name == 'sst'
    assert field.units == 'K'
    assert field.crs == ALBERS
    assert np.isnan(field.data[0, 1])
    assert field.data[1, 1] == pytest.approx(300.0)


def test_load_field_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_field(str(tmp_path / "nope.tif"))


def test_get_raster_info(tmp_path, grid_transform):
    path = write_tif(tmp_path / "depth.tif", np.zeros((2, 2)), grid_transform)
    info = get_raster_info(path)
    assert (info['width'], info['height']) == (2, 2)
    assert info['pixel_width'] == 1000.0
    assert not info['is_geographic']


def test_load_field_mean_ignores_missing(tmp_path, grid_transform):
    paths = [
        write_tif(tmp_path / "y1.tif", [[280, -1], [290, -1]], grid_transform, nodata=-1),
        write_tif(tmp_path / "y2.tif", [[282, 300], [-1, -1]], grid_transform, nodata=-1),
    ]
    mean = load_field_mean(paths, name='sst', units='K', verbose=False)

    assert mean.data[0, 0] == pytest.approx(281.0)
    assert mean.data[0, 1] == pytest.approx(300.0)
    assert mean.data[1, 0] == pytest.approx(290.0)
    assert np.isnan(mean.data[1, 1])


def test_load_field_mean_rejects_misaligned(tmp_path, grid_transform):
    paths = [
        write_tif(tmp_path / "y1.tif", np.zeros((2, 2)), grid_transform),
        write_tif(tmp_path / "y2.tif", np.zeros((3, 3)), grid_transform),
    ]
    with pytest.raises(ValueError):
        load_field_mean(paths, name='sst', verbose=False)


def test_kelvin_to_celsius():
    field = make_field([[273.15, 283.15], [np.nan, 303.15]], 'sst', units='K')
    celsius = convert_units(field, 'degC')

    assert celsius.units == 'degC'
    np.testing.assert_allclose(celsius.data[0], [0.0, 10.0])
    assert np.isnan(celsius.data[1, 0])
    # source untouched
    assert field.data[0, 0] == pytest.approx(273.15)


def test_elevation_to_signed_depth_keeps_values():
    field = make_field([[-10.0, 5.0], [-80.0, -50.0]], 'depth', units='m_elevation')
    depth = convert_units(field, 'm_depth')
    assert depth.units == 'm_depth'
    np.testing.assert_array_equal(depth.data, field.data)


def test_convert_units_rejects_unknown_or_missing():
    with pytest.raises(ValueError):
        convert_units(make_field(np.zeros((2, 2)), 'sst', units='degC'), 'm_depth')
    with pytest.raises(ValueError):
        convert_units(make_field(np.zeros((2, 2)), 'sst'), 'degC')


def test_convert_units_same_units_is_noop():
    field = make_field(np.zeros((2, 2)), 'sst', units='celsius')
    assert convert_units(field, 'degC') is field


def test_align_field_onto_coarser_grid():
    fine = make_field(np.arange(16, dtype=float).reshape(4, 4), 'depth',
                      cell=500.0, units='m_depth')
    reference = make_field(np.zeros((2, 2)), 'sst')

    aligned = align_field(fine, reference, verbose=False)

    assert aligned.same_grid(reference)
    assert aligned.name == 'depth'
    assert aligned.units == 'm_depth'
    assert set(aligned.data.ravel()).issubset(set(fine.data.ravel()))


def test_align_field_already_aligned_returns_input():
    field = make_field(np.zeros((2, 2)), 'depth')
    reference = make_field(np.ones((2, 2)), 'sst')
    assert align_field(field, reference, verbose=False) is field


def test_check_field_alignment_report():
    fields = {
        'sst': make_field(np.zeros((2, 2)), 'sst'),
        'depth': make_field(np.zeros((4, 4)), 'depth', cell=500.0),
    }
    report = check_field_alignment(fields, verbose=False)
    assert not report['aligned']
    assert 'depth' in report['mismatches']

    fields['depth'] = align_field(fields['depth'], fields['sst'], verbose=False)
    assert check_field_alignment(fields, verbose=False)['aligned']


def test_load_zones_computes_area(tmp_path):
    zones = gpd.GeoDataFrame({'rgn': ['A', 'B']},
                             geometry=[box(0, 0, 2000, 2000), box(2000, 0, 3000, 1000)],
                             crs=ALBERS)
    path = tmp_path / "zones.gpkg"
    zones.to_file(path, driver="GPKG")

    loaded = load_zones(str(path), verbose=False)

    assert loaded['rgn'].tolist() == ['A', 'B']
    np.testing.assert_allclose(loaded['area_km2'], [4.0, 1.0], rtol=1e-6)


def test_load_zones_keeps_precomputed_area_and_reprojects(tmp_path):
    zones = gpd.GeoDataFrame({'rgn': ['A'], 'area_km2': [123.0]},
                             geometry=[box(0, 0, 2000, 2000)], crs=ALBERS)
    path = tmp_path / "zones.gpkg"
    zones.to_file(path, driver="GPKG")

    loaded = load_zones(str(path), target_crs="EPSG:4326", verbose=False)

    assert loaded['area_km2'].iloc[0] == 123.0
    assert loaded.crs.to_epsg() == 4326


def test_load_zones_requires_id_column(tmp_path):
    zones = gpd.GeoDataFrame({'name': ['A']}, geometry=[box(0, 0, 1, 1)], crs=ALBERS)
    path = tmp_path / "zones.gpkg"
    zones.to_file(path, driver="GPKG")

    with pytest.raises(ValueError):
        load_zones(str(path), verbose=False)


def test_write_field_round_trip(tmp_path):
    field = make_field([[1.0, np.nan], [np.nan, 1.0]], 'suitability')
    path = write_field(field, tmp_path / "out" / "suitability.tif")

    loaded = load_field(path, verbose=False)
    assert loaded.same_grid(field)
    np.testing.assert_array_equal(np.isnan(loaded.data), np.isnan(field.data))
