#!/usr/bin/env python3
"""
Analyze batch step timings.

Loads a batch timing log, summarises step durations, fits a distribution to
the slowest step and compares load against duration over time.

Usage:
    python batch_analysis.py [batches_file] [output_dir]

Example:
    python batch_analysis.py sampleBatches.txt charts/
"""

import sys
from pathlib import Path

from aggregate_stats import (
    describe,
    format_metric,
    histogram,
    maximum,
    mean,
    reduce_groups,
    select_group,
    top_group,
)
from correlation import aligned_series, by_hour_of_day, by_hours_since_origin, correlate, print_bucket_table
from errors import DistributionFitFailure
from fit_distributions import (
    DEFAULT_CANDIDATES,
    cdf,
    complementary_cdf,
    fit_gmm_2_components,
    print_fit_ranking,
    rank_candidates,
    sample,
)
import plots
from record_parser import parse_records, read_batch_file
from timing_table import DEFAULT_ORIGIN_ROW, DURATION, STEP, TimingTable


DEFAULT_BATCHES_FILE = 'sampleBatches.txt'
HISTOGRAM_BINS = 100
SIMULATION_SIZE = 1000
CDF_QUERY = 100.0
TAIL_QUERY = 50.0


def load_table(text, lenient=False):
    """
    Parse and load a batch log.

    Returns:
        tuple: (table, errors) where errors lists skipped rows in lenient mode
    """
    errors = [] if lenient else None
    records = parse_records(text, errors=errors)
    table = TimingTable.load(records, errors=errors)
    return table, errors or []


def print_step_table(steps, step_max):
    """Print per-step mean ± std and max duration, sorted by step label."""
    print(f"{'Step':<20} | {'Mean ± Std (s)':>18} | {'Max (s)':>10}")
    print("-" * 54)
    for step in sorted(steps):
        spread = format_metric(steps[step].column(DURATION))
        print(f"{step:<20} | {spread:>18} | {step_max[step]:>10.2f}")


def run_analysis(text, output_dir=None, candidates=DEFAULT_CANDIDATES, seed=None, lenient=False):
    """
    Run the full analysis on batch log text.

    Charts are written only when ``output_dir`` is given.

    Returns:
        dict: computed results keyed by name
    """
    results = {}

    print("\n=== Loading Batch Timings ===")
    table, errors = load_table(text, lenient=lenient)
    print(f"Loaded {len(table)} step records")
    if errors:
        print(f"Skipped {len(errors)} invalid row(s):")
        for e in errors:
            print(f"  - {e}")
    results['rows'] = len(table)
    results['errors'] = errors

    # ---- Step summaries ----
    print("\n" + "="*80)
    print("STEP DURATIONS")
    print("="*80)

    durations = table.column(DURATION)
    results['mean_duration'] = mean(durations)
    print(f"\nMean step duration: {results['mean_duration']:.2f} sec\n")

    steps = table.group_by_column(STEP)
    step_means = reduce_groups(steps, DURATION, mean)
    step_max = reduce_groups(steps, DURATION, maximum)
    print_step_table(steps, step_max)
    results['step_means'] = step_means

    slowest_step, slowest_mean = top_group(step_means)
    print(f"\nSlowest step: {slowest_step} ({slowest_mean:.2f} sec)")
    results['slowest_step'] = slowest_step

    slow_sample = select_group(steps, slowest_step).column(DURATION)
    results['slowest_summary'] = describe(slow_sample)
    print(f"  Max: {results['slowest_summary']['max']:.2f} sec")
    for key in ('p50', 'p90', 'p95', 'p99'):
        print(f"  {key.upper()}: {results['slowest_summary'][key]:.2f} sec")

    # ---- Distribution fitting ----
    print("\n" + "="*80)
    print(f"DURATION DISTRIBUTION ({slowest_step})")
    print("="*80)

    upper_edges, counts = histogram(slow_sample, bins=HISTOGRAM_BINS)

    ranking = None
    try:
        ranking = rank_candidates(slow_sample, candidates)
    except DistributionFitFailure as e:
        print(f"  Failed to fit distributions: {e}")
    results['ranking'] = ranking
    fitted_names = {fit.name for fit in ranking or ()}
    results['unranked'] = [family for family in candidates if family not in fitted_names]

    if ranking:
        print_fit_ranking(slow_sample, ranking, "Candidate Distribution Fits")

        best = ranking[0]
        if results['unranked']:
            print(f"\n  Best fit: {best.name} (not ranked: {', '.join(results['unranked'])})")
        results['cdf'] = cdf(best, CDF_QUERY)
        results['tail'] = complementary_cdf(best, TAIL_QUERY)
        print(f"\n  P(duration <= {CDF_QUERY:g}s) under {best.name}: {results['cdf']:.3f}")
        print(f"  P(duration > {TAIL_QUERY:g}s) under {best.name}: {results['tail']:.3f}")

        results['simulated'] = sample(best, SIMULATION_SIZE, seed=seed)
        print(f"  Simulated {SIMULATION_SIZE} draws: mean={mean(results['simulated']):.2f} sec")

    print("\n  Gaussian Mixture Model (2 components):")
    try:
        means, stds, weights, bic, aic, _ = fit_gmm_2_components(slow_sample)
        for i in range(2):
            print(f"    Component {i+1}: weight={weights[i]:.3f}, "
                  f"mean={means[i]:.3f}s, std={stds[i]:.3f}s")
        print(f"    BIC: {bic:.2f}, AIC: {aic:.2f}")
        results['mixture'] = {'means': means, 'stds': stds, 'weights': weights}
    except DistributionFitFailure as e:
        print(f"    Failed to fit GMM: {e}")
        results['mixture'] = None

    # ---- Load vs duration ----
    print("\n" + "="*80)
    print("LOAD VS DURATION")
    print("="*80)

    print("  - Hour of day...\n")
    hour_means, hour_counts = by_hour_of_day(table)
    print_bucket_table(hour_means, hour_counts, 'Hour of Day')
    results['hour_of_day'] = correlate(hour_means, hour_counts)

    print("\n  - Hours since origin...\n")
    # a single-row log has no second row to measure from
    origin_row = DEFAULT_ORIGIN_ROW if len(table) > DEFAULT_ORIGIN_ROW else 0
    origin_means, origin_counts = by_hours_since_origin(table, origin_row)
    print_bucket_table(origin_means, origin_counts, 'Hours Since Origin')
    results['hours_since_origin'] = correlate(origin_means, origin_counts)

    print()
    for label, key in (('Hour of day', 'hour_of_day'), ('Hours since origin', 'hours_since_origin')):
        coefficients = results[key]
        print(f"  {label}: pearson={coefficients['pearson']:.3f}, "
              f"spearman={coefficients['spearman']:.3f} over {coefficients['buckets']} buckets")

    if output_dir is not None:
        print("\n" + "="*80)
        print("GENERATING VISUALIZATIONS")
        print("="*80)

        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)

        plots.plot_duration_histogram(upper_edges, counts, f'{slowest_step} Durations',
                                      out / 'step_duration_histogram.png')
        if ranking:
            plots.plot_fit_comparison(slow_sample, ranking, slowest_step,
                                      out / 'step_duration_fits.png')
            plots.plot_simulated_sample(results['simulated'], ranking[0],
                                        out / 'simulated_durations.png')
        keys, hour_mean_series, hour_count_series = aligned_series(hour_means, hour_counts)
        plots.plot_load_vs_duration(keys, hour_mean_series, hour_count_series, 'Hour of Day',
                                    out / 'load_vs_duration_by_hour.png')
        keys, origin_mean_series, origin_count_series = aligned_series(origin_means, origin_counts)
        plots.plot_load_vs_duration(keys, origin_mean_series, origin_count_series,
                                    'Hours Since Origin', out / 'load_vs_duration_over_time.png')

    print()
    return results


def main():
    """Main analysis pipeline."""
    if len(sys.argv) > 3:
        print("Usage: python batch_analysis.py [batches_file] [output_dir]")
        sys.exit(1)

    batches_file = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BATCHES_FILE
    output_dir = sys.argv[2] if len(sys.argv) > 2 else '.'

    print(f"\n=== Reading Batches from: {batches_file} ===")
    text = read_batch_file(batches_file)

    run_analysis(text, output_dir=output_dir)


if __name__ == '__main__':
    main()
