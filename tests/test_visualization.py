import matplotlib.pyplot as plt
import numpy as np
import pytest

from suitability_analysis import (
    evaluate_suitability,
    plot_suitability_map,
    plot_zone_summary,
)

from conftest import make_field


@pytest.fixture
def evaluated(scenario_fields, scenario_ranges, split_zones):
    return evaluate_suitability(scenario_fields, scenario_ranges, split_zones, verbose=False)


def test_suitability_map_saves(tmp_path, evaluated, split_zones):
    grid, _ = evaluated
    path = tmp_path / "map.png"
    fig, ax = plot_suitability_map(grid, split_zones, zone_id_col='rgn',
                                   title='Oysters', save_path=str(path))
    assert path.exists()
    assert ax.get_title() == 'Oysters'
    plt.close(fig)


def test_suitability_map_without_zones(evaluated):
    grid, _ = evaluated
    fig, ax = plot_suitability_map(grid)
    assert ax.get_xlim() == pytest.approx((0.0, 2000.0))
    plt.close(fig)


@pytest.mark.parametrize("value", ['suitable_area_km2', 'percent_suitable'])
def test_zone_summary_chart(tmp_path, evaluated, value):
    _, summary = evaluated
    path = tmp_path / f"{value}.png"
    fig, ax = plot_zone_summary(summary, species='pacific_oyster', value=value,
                                save_path=str(path))
    assert path.exists()
    assert len(ax.patches) == len(summary)
    assert ax.get_title().startswith('Pacific Oyster')
    plt.close(fig)


def test_zone_summary_chart_rejects_unknown_column(evaluated):
    _, summary = evaluated
    with pytest.raises(ValueError):
        plot_zone_summary(summary, value='nope')


def test_suitability_map_with_string_crs(tmp_path, scenario_ranges, split_zones):
    fields = {
        'sst': make_field([[10.0, 15.0], [25.0, 35.0]], 'sst', units='degC', crs="EPSG:5070"),
        'depth': make_field([[-10.0, -50.0], [-80.0, 5.0]], 'depth', units='m_depth',
                            crs="EPSG:5070"),
    }
    grid, _ = evaluate_suitability(fields, scenario_ranges, split_zones, verbose=False)

    fig, ax = plot_suitability_map(grid, split_zones, zone_id_col='rgn',
                                   save_path=str(tmp_path / "map.png"))
    assert ax.get_xlabel() == 'Easting'
    assert (tmp_path / "map.png").exists()
    plt.close(fig)


def test_geographic_map_labels():
    field = make_field([[1.0, np.nan], [np.nan, 1.0]], 'suitability', crs="EPSG:4326",
                       cell=1.0, origin=(-125.0, 42.0))
    fig, ax = plot_suitability_map(field)
    assert ax.get_xlabel() == 'Longitude'
    assert ax.get_ylabel() == 'Latitude'
    plt.close(fig)


def test_missing_plot_style_falls_back(monkeypatch):
    import suitability_analysis.visualization as viz
    monkeypatch.setattr(viz, 'PLOT_STYLE', 'no-such-style')
    viz.setup_plot_style()
    assert plt.rcParams['savefig.dpi'] == 300
