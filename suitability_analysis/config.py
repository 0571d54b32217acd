"""
Configuration settings for Marine Suitability Analysis
=======================================================

This module contains all paths, parameters, and constants for the analysis.
Users should modify the PATHS section for their specific system.

Project: Marine Aquaculture Suitability - West Coast EEZ
"""

import os
from pathlib import Path

# ============================================================================
# PATHS - USER MODIFIES THESE FOR THEIR SYSTEM
# ============================================================================

DATA_DIR = os.environ.get("SUITABILITY_DATA_DIR", str(Path("data")))

# Sea surface temperature: one annual-average raster per year (Kelvin)
SST_PATHS = [
    str(Path(DATA_DIR) / f"average_annual_sst_{year}.tif")
    for year in range(2008, 2013)
]

RASTERS = {
    'sst': SST_PATHS,
    # GEBCO bathymetry: elevation relative to sea level (negative = below)
    'depth': str(Path(DATA_DIR) / "depth.tif"),
}

# Exclusive Economic Zone regions (one polygon per maritime region)
ZONES_PATH = str(Path(DATA_DIR) / "wc_regions_clean.shp")
ZONES_LAYER = None

# Raster metadata - NoData values and units for each raster
# Units here are the units of the values ON DISK, before any conversion.
RASTER_METADATA = {
    'sst': {
        'nodata': None,           # Read from file
        'units': 'K',             # Kelvin
        'target_units': 'degC',
    },
    'depth': {
        'nodata': None,
        'units': 'm_elevation',   # Metres, negative below sea level
        'target_units': 'm_depth',
    },
}

# Output directory (will be created if it doesn't exist)
OUTPUT_DIR = os.environ.get("SUITABILITY_OUTPUT_DIR", str(Path("outputs")))

# ============================================================================
# UNIT CONVENTIONS
# ============================================================================
# Temperature ranges are expressed in degrees Celsius ('degC').
# Depth ranges are expressed as signed metres relative to sea level
# ('m_depth'): 0 is the surface and -70 is 70 m below it. GEBCO elevation is
# already in this convention, so 'm_elevation' -> 'm_depth' keeps values.

KELVIN_OFFSET = 273.15

UNIT_ALIASES = {
    'K': 'K', 'kelvin': 'K',
    'degC': 'degC', 'C': 'degC', 'celsius': 'degC', '°C': 'degC',
    'm_depth': 'm_depth', 'm_elevation': 'm_elevation',
}

# ============================================================================
# ZONE COLUMN NAMES
# ============================================================================

ZONE_COLS = {
    'id': 'rgn',            # Region name
    'area': 'area_km2',     # Precomputed region area (km²)
}

# ============================================================================
# SPECIES TOLERANCES
# ============================================================================
# Half-open ranges [min, max) per environmental variable.
# Sources: SeaLifeBase species summaries.

SPECIES_TOLERANCES = {
    'oysters': {
        'sst': (11.0, 30.0, 'degC'),
        'depth': (-70.0, 0.0, 'm_depth'),
    },
    'dungeness_crab': {
        'sst': (3.0, 19.0, 'degC'),
        'depth': (-360.0, 0.0, 'm_depth'),
    },
    'pacific_geoduck': {
        'sst': (8.0, 18.0, 'degC'),
        'depth': (-110.0, 0.0, 'm_depth'),
    },
    'red_abalone': {
        'sst': (8.0, 18.0, 'degC'),
        'depth': (-24.0, 0.0, 'm_depth'),
    },
}

# ============================================================================
# PROCESSING PARAMETERS
# ============================================================================

# Target CRS for zone area calculations (NAD83 / Conus Albers, equal area)
TARGET_CRS = "EPSG:5070"

# CRS assumed for vector data that ships without one
DEFAULT_CRS = "EPSG:4326"

# Mean Earth radius (authalic, km) for geographic cell areas
EARTH_RADIUS_KM = 6371.0072

# Worker threads for multi-species evaluation (None = executor default)
MAX_WORKERS = None

# ============================================================================
# VISUALIZATION PARAMETERS
# ============================================================================

PLOT_STYLE = 'seaborn-v0_8-whitegrid'

PLOT_PARAMS = {
    'font.size': 12,
    'axes.labelsize': 14,
    'axes.titlesize': 16,
    'legend.fontsize': 11,
    'figure.dpi': 150,
    'savefig.dpi': 300,
    'savefig.bbox': 'tight',
    'figure.figsize': (10, 6),
}

COLORMAPS = {
    'suitability': 'Greens',
    'zones': 'Set2',
    'sequential': 'viridis',
}


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def ensure_output_dir():
    """Create output directory if it doesn't exist."""
    Path(OUTPUT_DIR).mkdir(parents=True, exist_ok=True)
    return OUTPUT_DIR


def get_raster_path(raster_name):
    """Get path(s) for a named raster."""
    if raster_name not in RASTERS:
        raise ValueError(f"Unknown raster: {raster_name}. Available: {list(RASTERS.keys())}")
    return RASTERS[raster_name]


def get_species_tolerance(species):
    """
    Look up the tolerance ranges for a species.

    Returns a fresh dict so callers may edit it without touching the
    catalogue.
    """
    key = species.lower().replace(' ', '_')
    if key not in SPECIES_TOLERANCES:
        raise ValueError(
            f"Unknown species: {species}. Available: {list(SPECIES_TOLERANCES.keys())}"
        )
    return dict(SPECIES_TOLERANCES[key])


def normalize_units(units):
    """Map a units label onto its canonical spelling (None passes through)."""
    if units is None:
        return None
    return UNIT_ALIASES.get(units, units)


def print_config_summary():
    """Print summary of current configuration."""
    print("=" * 60)
    print("MARINE SUITABILITY ANALYSIS - Configuration Summary")
    print("=" * 60)
    print(f"\nRasters:")
    for name, paths in RASTERS.items():
        if isinstance(paths, str):
            paths = [paths]
        for path in paths:
            exists = "✓" if os.path.exists(path) else "✗"
            print(f"  [{exists}] {name}: {path}")
    exists = "✓" if os.path.exists(ZONES_PATH) else "✗"
    print(f"\nZones:")
    print(f"  [{exists}] {ZONES_PATH}")
    print(f"\nSpecies: {', '.join(SPECIES_TOLERANCES)}")
    print(f"Target CRS: {TARGET_CRS}")
    print(f"Output Directory: {OUTPUT_DIR}")
    print("=" * 60)


if __name__ == "__main__":
    print_config_summary()
