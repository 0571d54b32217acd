"""
Marine Suitability Analysis Package
====================================

A Python package for mapping where marine aquaculture species can be farmed
within maritime zones, from sea surface temperature and depth rasters.

Core Idea: A cell is suitable only when every environmental variable lies
inside the species' tolerance range; suitable area is then summed per zone
with per-cell area weighting.

Modules:
    config           - Configuration settings, paths, species tolerances
    fields           - Raster field and tolerance range types, cell areas
    data_loading     - Load rasters and zones, convert units, co-register
    suitability      - Reclassification, conjunction, zone summaries
    visualization    - Suitability maps and zone bar charts
    main             - Orchestration and pipeline

Quick Start:
    >>> from suitability_analysis import load_inputs, analyze_species
    >>> inputs = load_inputs()
    >>> results = analyze_species('oysters', inputs)
"""

__version__ = '0.1.0'

# Import key functions for convenient access
from .config import (
    SPECIES_TOLERANCES, ZONE_COLS, TARGET_CRS,
    ensure_output_dir, get_species_tolerance, print_config_summary
)

from .fields import (
    EnvironmentalField,
    ToleranceRange,
    as_tolerance_range,
    compute_cell_areas,
    is_equal_area
)

from .data_loading import (
    get_raster_info,
    load_field,
    load_field_mean,
    convert_units,
    align_field,
    check_field_alignment,
    load_zones,
    write_field,
    quick_data_check
)

from .suitability import (
    SuitabilityError,
    ShapeMismatchError,
    MissingRangeError,
    UnitMismatchError,
    reclassify_field,
    combine_suitability,
    summarize_zones,
    evaluate_suitability,
    evaluate_species_batch
)

from .visualization import (
    plot_suitability_map,
    plot_zone_summary,
    setup_plot_style
)

from .main import (
    load_inputs,
    analyze_species,
    run_full_analysis
)
