"""
Marine Suitability Analysis - Main Orchestration Script
========================================================

This script provides the main entry point for running the suitability
analysis. It can be run directly or individual functions can be called
interactively in Spyder/IPython.

Usage:
    # Check inputs
    python -m suitability_analysis.main --check

    # One species
    python -m suitability_analysis.main --species oysters

    # Every species in SPECIES_TOLERANCES
    python -m suitability_analysis.main --full

    # Or interactively:
    from suitability_analysis.main import *
    inputs = load_inputs()
    results = analyze_species('oysters', inputs)

Workflow:
    1. Average the yearly SST rasters and convert Kelvin to Celsius
    2. Align bathymetry onto the SST grid (nearest neighbour)
    3. Load EEZ zones with their areas
    4. Reclassify each field against the species' tolerance ranges
    5. Intersect (logical AND) into one suitability grid
    6. Sum suitable area per zone and report percent suitable
"""

import os
import sys
import time
from pathlib import Path
from contextlib import contextmanager
from datetime import timedelta

# Add module directory to path if running directly
if __name__ == "__main__" and __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).parent))

import pandas as pd
import matplotlib.pyplot as plt


# ============================================================================
# RUNTIME TRACKING AND PROGRESS UTILITIES
# ============================================================================

def format_duration(seconds):
    """Seconds as a short human-readable string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds/60:.1f}min"
    return str(timedelta(seconds=int(seconds)))


class AnalysisTimer:
    """
    Wall-clock duration of each pipeline step, in run order.

    Usage:
        timer = AnalysisTimer()
        with timer.step("Load inputs"):
            inputs = load_inputs()
        timer.report()
    """

    def __init__(self):
        self.steps = []

    @contextmanager
    def step(self, name):
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.steps.append((name, elapsed))
            print(f"  [DONE] {name} completed in {format_duration(elapsed)}")

    @property
    def total(self):
        return sum(elapsed for _, elapsed in self.steps)

    def report(self):
        """Print the per-step table and return the total seconds."""
        print("\n" + "=" * 60)
        print("RUNTIME SUMMARY")
        print("=" * 60)
        for name, elapsed in self.steps:
            pct = elapsed / self.total * 100 if self.total > 0 else 0
            print(f"{name:<40} {format_duration(elapsed):>10} ({pct:>4.1f}%)")
        print("-" * 60)
        print(f"{'Total':<40} {format_duration(self.total):>10}")
        return self.total


def print_step_header(step_num, total_steps, title):
    """Print a formatted step header with progress."""
    bar_width = 30
    pct = step_num / total_steps
    filled = int(bar_width * pct)
    bar = "█" * filled + "░" * (bar_width - filled)

    print(f"\n[{bar}] Step {step_num}/{total_steps}")
    print("-" * 60)
    print(f"  {title}")
    print("-" * 60)


# Import project modules - handle both package and direct execution
try:
    from .config import (
        RASTERS, RASTER_METADATA, ZONES_PATH, ZONES_LAYER, ZONE_COLS,
        SPECIES_TOLERANCES, MAX_WORKERS,
        ensure_output_dir, get_species_tolerance, print_config_summary
    )
    from .data_loading import (
        load_field, load_field_mean, convert_units, align_field,
        check_field_alignment, load_zones, write_field, quick_data_check
    )
    from .suitability import evaluate_suitability, evaluate_species_batch
    from .visualization import plot_suitability_map, plot_zone_summary
except ImportError:
    from config import (
        RASTERS, RASTER_METADATA, ZONES_PATH, ZONES_LAYER, ZONE_COLS,
        SPECIES_TOLERANCES, MAX_WORKERS,
        ensure_output_dir, get_species_tolerance, print_config_summary
    )
    from data_loading import (
        load_field, load_field_mean, convert_units, align_field,
        check_field_alignment, load_zones, write_field, quick_data_check
    )
    from suitability import evaluate_suitability, evaluate_species_batch
    from visualization import plot_suitability_map, plot_zone_summary


# ============================================================================
# DATA LOADING
# ============================================================================

def load_inputs(sst_paths=None, depth_path=None, zones_path=None):
    """
    Load and co-register the environmental fields and zones.

    Parameters
    ----------
    sst_paths : list of str, optional
        Yearly SST rasters (defaults to RASTERS['sst'])
    depth_path : str, optional
        Bathymetry raster (defaults to RASTERS['depth'])
    zones_path : str, optional
        Zone polygons (defaults to ZONES_PATH)

    Returns
    -------
    dict
        {'fields': {'sst': ..., 'depth': ...}, 'zones': GeoDataFrame}
    """
    print("\n" + "=" * 60)
    print("LOADING INPUT DATA")
    print("=" * 60)

    sst_paths = sst_paths or RASTERS['sst']
    depth_path = depth_path or RASTERS['depth']
    zones_path = zones_path or ZONES_PATH

    try:
        print(f"\n[STEP 1/4] Averaging sea surface temperature...")
        if isinstance(sst_paths, str):
            sst_paths = [sst_paths]
        sst = load_field_mean(sst_paths, name='sst', units=RASTER_METADATA['sst']['units'])
        sst = convert_units(sst, RASTER_METADATA['sst']['target_units'])
        print(f"  SST units: {sst.units}")

        print(f"\n[STEP 2/4] Loading bathymetry...")
        depth = load_field(depth_path, name='depth', units=RASTER_METADATA['depth']['units'])
        depth = convert_units(depth, RASTER_METADATA['depth']['target_units'])

        print(f"\n[STEP 3/4] Aligning bathymetry to SST grid...")
        depth = align_field(depth, sst)
        fields = {'sst': sst, 'depth': depth}
        report = check_field_alignment(fields)
        if not report['aligned']:
            raise ValueError(f"Fields still misaligned after resampling: {report['mismatches']}")

        print(f"\n[STEP 4/4] Loading zones...")
        zones = load_zones(zones_path, layer=ZONES_LAYER if zones_path == ZONES_PATH else None)

        print(f"\n[SUCCESS] Inputs loaded!")
        return {'fields': fields, 'zones': zones}

    except FileNotFoundError as e:
        print(f"\n[ERROR] File not found: {e}")
        print("  Please check the paths in config.py")
        raise
    except Exception as e:
        print(f"\n[ERROR] Failed to load inputs: {e}")
        raise


# ============================================================================
# SINGLE SPECIES
# ============================================================================

def save_species_outputs(species, suitability, summary, zones, output_dir=None):
    """
    Write the suitability GeoTIFF, summary CSV, and figures for one species.

    Returns
    -------
    dict
        Output name -> path
    """
    output_dir = output_dir or ensure_output_dir()
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    prefix = Path(output_dir) / species

    paths = {
        'raster': write_field(suitability, f"{prefix}_suitability.tif"),
        'summary': f"{prefix}_zone_summary.csv",
        'map': f"{prefix}_suitability_map.png",
        'chart': f"{prefix}_zone_summary.png",
    }
    summary.to_csv(paths['summary'], index=False)

    fig, _ = plot_suitability_map(suitability, zones, zone_id_col=ZONE_COLS['id'],
                                  title=f"Suitable Area: {species.replace('_', ' ').title()}",
                                  save_path=paths['map'])
    plt.close(fig)

    fig, _ = plot_zone_summary(summary, species=species, save_path=paths['chart'])
    plt.close(fig)

    return paths


def analyze_species(species, inputs=None, ranges=None, save_outputs=True, output_dir=None):
    """
    Run the suitability workflow for one species.

    Parameters
    ----------
    species : str
        Species name; looked up in SPECIES_TOLERANCES unless `ranges` is given
    inputs : dict, optional
        Output of load_inputs() (loaded if None)
    ranges : dict, optional
        Explicit variable -> (min, max[, units]) ranges
    save_outputs : bool
        Write raster, CSV, and figures to output_dir
    output_dir : str, optional
        Defaults to OUTPUT_DIR

    Returns
    -------
    dict
        {'species', 'ranges', 'suitability', 'summary', 'outputs'}
    """
    print("\n" + "=" * 60)
    print(f"SUITABILITY: {species.upper()}")
    print("=" * 60)

    if ranges is None:
        ranges = get_species_tolerance(species)
    if inputs is None:
        inputs = load_inputs()

    suitability, summary = evaluate_suitability(inputs['fields'], ranges, inputs['zones'])

    print("\n[RESULTS] Suitable area by zone:")
    for _, row in summary.iterrows():
        print(f"  {str(row['zone_id']):<30} {row['suitable_area_km2']:>12,.1f} km² "
              f"({row['percent_suitable']:.2f}%)")

    outputs = {}
    if save_outputs:
        outputs = save_species_outputs(species, suitability, summary, inputs['zones'],
                                       output_dir=output_dir)
        print(f"  Results saved to {Path(outputs['summary']).parent}/")

    print(f"\n[SUCCESS] {species} analysis complete!")

    return {
        'species': species,
        'ranges': ranges,
        'suitability': suitability,
        'summary': summary,
        'outputs': outputs,
    }


# ============================================================================
# ALL SPECIES
# ============================================================================

def run_full_analysis(species_list=None, inputs=None, save_outputs=True, output_dir=None):
    """
    Evaluate every species against one set of inputs.

    Inputs are loaded once; species are evaluated in parallel threads.

    Returns
    -------
    dict
        Species -> result dict (as from analyze_species()), plus
        'combined_summary' with all species stacked
    """
    species_list = list(species_list or SPECIES_TOLERANCES)
    timer = AnalysisTimer()
    total_steps = 3

    print("\n" + "=" * 60)
    print("MARINE SUITABILITY ANALYSIS - FULL RUN")
    print("=" * 60)
    print(f"  Species: {', '.join(species_list)}")

    print_step_header(1, total_steps, "Load inputs")
    with timer.step("Load inputs"):
        if inputs is None:
            inputs = load_inputs()

    print_step_header(2, total_steps, "Evaluate species")
    with timer.step("Evaluate species"):
        species_ranges = {s: get_species_tolerance(s) for s in species_list}
        evaluated = evaluate_species_batch(inputs['fields'], species_ranges, inputs['zones'],
                                           max_workers=MAX_WORKERS)

    print_step_header(3, total_steps, "Save outputs")
    results = {}
    summaries = []
    with timer.step("Save outputs"):
        for species, (suitability, summary) in evaluated.items():
            outputs = {}
            if save_outputs:
                outputs = save_species_outputs(species, suitability, summary,
                                               inputs['zones'], output_dir=output_dir)
            results[species] = {
                'species': species,
                'ranges': species_ranges[species],
                'suitability': suitability,
                'summary': summary,
                'outputs': outputs,
            }
            summaries.append(summary.assign(species=species))
            print(f"  {species:<20} {summary['suitable_area_km2'].sum():>12,.1f} km² suitable")

        combined = pd.concat(summaries, ignore_index=True)
        if save_outputs:
            out_dir = output_dir or ensure_output_dir()
            combined.to_csv(os.path.join(out_dir, "all_species_zone_summary.csv"), index=False)

    results['combined_summary'] = combined
    timer.report()
    return results


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Marine Suitability Analysis')
    parser.add_argument('--check', action='store_true',
                        help='Check data availability only')
    parser.add_argument('--config', action='store_true',
                        help='Print configuration summary')
    parser.add_argument('--species', choices=sorted(SPECIES_TOLERANCES),
                        help='Run a single species')
    parser.add_argument('--full', action='store_true',
                        help='Run every species')
    parser.add_argument('--no-save', action='store_true',
                        help='Do not write rasters, CSVs, or figures')

    args = parser.parse_args()

    if args.config:
        print_config_summary()
    elif args.check:
        quick_data_check()
    elif args.species:
        analyze_species(args.species, save_outputs=not args.no_save)
    elif args.full:
        run_full_analysis(save_outputs=not args.no_save)
    else:
        parser.print_help()
