import os

import numpy as np
import geopandas as gpd
import pytest
from rasterio.transform import from_origin
from shapely.geometry import box

from suitability_analysis import (
    SPECIES_TOLERANCES,
    get_species_tolerance,
    load_inputs,
    analyze_species,
    run_full_analysis,
)
from suitability_analysis.main import AnalysisTimer, format_duration

from conftest import ALBERS
from test_data_loading import write_tif


@pytest.fixture
def input_files(tmp_path):
    """Two yearly SST rasters in Kelvin, a finer bathymetry raster, and zones."""
    coarse = from_origin(0, 2000, 1000, 1000)
    fine = from_origin(0, 2000, 500, 500)

    # Mean SST in degC: [[10, 15], [25, 35]]
    sst_paths = [
        write_tif(tmp_path / "sst_2008.tif", np.array([[9, 14], [24, 34]]) + 273.15, coarse),
        write_tif(tmp_path / "sst_2009.tif", np.array([[11, 16], [26, 36]]) + 273.15, coarse),
    ]
    # Each coarse cell is a uniform 2x2 block of fine cells
    depth = np.kron(np.array([[-10.0, -50.0], [-80.0, 5.0]]), np.ones((2, 2)))
    depth_path = write_tif(tmp_path / "depth.tif", depth, fine)

    zones = gpd.GeoDataFrame({'rgn': ['West', 'East'], 'area_km2': [2.0, 2.0]},
                             geometry=[box(0, 0, 1000, 2000), box(1000, 0, 2000, 2000)],
                             crs=ALBERS)
    zones_path = tmp_path / "zones.gpkg"
    zones.to_file(zones_path, driver="GPKG")

    return {'sst_paths': sst_paths, 'depth_path': depth_path, 'zones_path': str(zones_path)}


@pytest.fixture
def inputs(input_files):
    return load_inputs(**input_files)


def test_load_inputs_converts_and_aligns(inputs):
    sst = inputs['fields']['sst']
    depth = inputs['fields']['depth']

    assert sst.units == 'degC'
    assert depth.units == 'm_depth'
    assert depth.same_grid(sst)
    np.testing.assert_allclose(sst.data, [[10, 15], [25, 35]], atol=1e-3)
    np.testing.assert_allclose(depth.data, [[-10, -50], [-80, 5]])
    assert inputs['zones']['rgn'].tolist() == ['West', 'East']


def test_analyze_species_oysters(tmp_path, inputs):
    out_dir = tmp_path / "outputs"
    result = analyze_species('oysters', inputs, output_dir=str(out_dir))

    summary = result['summary'].set_index('zone_id')
    assert summary.loc['West', 'suitable_area_km2'] == 0.0
    assert summary.loc['East', 'suitable_area_km2'] == pytest.approx(1.0)
    assert summary.loc['East', 'percent_suitable'] == pytest.approx(50.0)

    for path in result['outputs'].values():
        assert os.path.exists(path)


def test_analyze_species_with_explicit_ranges(inputs):
    ranges = {'sst': (0, 100, 'degC'), 'depth': (-1000, 1000, 'm_depth')}
    result = analyze_species('everything', inputs, ranges=ranges, save_outputs=False)
    assert result['summary']['suitable_area_km2'].sum() == pytest.approx(4.0)
    assert result['outputs'] == {}


def test_run_full_analysis(tmp_path, inputs):
    species = ['oysters', 'dungeness_crab']
    results = run_full_analysis(species_list=species, inputs=inputs,
                                output_dir=str(tmp_path))

    combined = results['combined_summary']
    assert set(combined['species']) == set(species)
    assert len(combined) == 2 * len(inputs['zones'])
    assert (tmp_path / "all_species_zone_summary.csv").exists()
    assert results['oysters']['summary']['suitable_area_km2'].sum() == pytest.approx(1.0)


def test_species_catalogue_lookup():
    ranges = get_species_tolerance('Dungeness Crab')
    assert set(ranges) == {'sst', 'depth'}
    ranges['sst'] = (0, 1)
    assert SPECIES_TOLERANCES['dungeness_crab']['sst'] != (0, 1)

    with pytest.raises(ValueError):
        get_species_tolerance('kraken')


def test_timer_records_steps(capsys):
    timer = AnalysisTimer()
    with timer.step("step one"):
        pass
    with timer.step("step two"):
        pass

    assert [name for name, _ in timer.steps] == ['step one', 'step two']
    assert timer.report() == pytest.approx(timer.total)
    assert "RUNTIME SUMMARY" in capsys.readouterr().out


def test_format_duration():
    assert format_duration(5) == "5.0s"
    assert format_duration(90) == "1.5min"
    assert format_duration(7200) == "2:00:00"
