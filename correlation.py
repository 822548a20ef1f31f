"""
Compare load (rows per time bucket) against mean step duration per bucket.
"""

import numpy as np
from scipy import stats

from aggregate_stats import mean, reduce_groups
from timing_table import (
    DEFAULT_ORIGIN_ROW,
    DURATION,
    HOUR_OF_DAY,
    HOURS_SINCE_ORIGIN,
    add_hour_of_day,
    add_hours_since_origin,
)


def bucket_by(table, bucket_key_fn):
    """
    Bucket rows and reduce each bucket to its mean duration and row count.

    Returns:
        tuple: (mean_by_bucket, count_by_bucket) keyed by the same buckets
    """
    groups = table.group_by(bucket_key_fn)
    mean_by_bucket = reduce_groups(groups, DURATION, mean)
    count_by_bucket = {key: len(group) for key, group in groups.items()}
    return mean_by_bucket, count_by_bucket


def by_hour_of_day(table):
    """Bucket by the hour of each row's start time."""
    if HOUR_OF_DAY not in table.column_names:
        add_hour_of_day(table)
    return bucket_by(table, lambda row: row[HOUR_OF_DAY])


def by_hours_since_origin(table, origin_row=DEFAULT_ORIGIN_ROW):
    """Bucket by whole hours elapsed since the origin row's start."""
    if HOURS_SINCE_ORIGIN not in table.column_names:
        add_hours_since_origin(table, origin_row)
    return bucket_by(table, lambda row: row[HOURS_SINCE_ORIGIN])


def aligned_series(mean_by_bucket, count_by_bucket):
    """
    Line up the two bucket aggregates by sorted key.

    Returns:
        tuple: (keys, mean_durations, counts) as numpy arrays
    """
    if set(mean_by_bucket) != set(count_by_bucket):
        raise ValueError("mean and count aggregates have different buckets")

    keys = sorted(mean_by_bucket)
    means = np.array([mean_by_bucket[k] for k in keys], dtype=float)
    counts = np.array([count_by_bucket[k] for k in keys], dtype=int)
    return np.array(keys), means, counts


def correlate(mean_by_bucket, count_by_bucket):
    """
    Pearson and Spearman coefficients between bucket load and mean duration.

    Needs at least 3 buckets and non-constant series; otherwise both
    coefficients are NaN.

    Returns:
        dict: {'pearson': r, 'spearman': rho, 'buckets': n}
    """
    _, means, counts = aligned_series(mean_by_bucket, count_by_bucket)
    result = {'pearson': float('nan'), 'spearman': float('nan'), 'buckets': len(means)}

    if len(means) < 3 or np.ptp(means) == 0 or np.ptp(counts) == 0:
        return result

    result['pearson'] = float(stats.pearsonr(counts, means)[0])
    result['spearman'] = float(stats.spearmanr(counts, means)[0])
    return result


def print_bucket_table(mean_by_bucket, count_by_bucket, label):
    """Print buckets side by side: row count and mean duration."""
    keys, means, counts = aligned_series(mean_by_bucket, count_by_bucket)

    print(f"{label:<20} | {'Rows':>8} | {'Mean Duration (s)':>18}")
    print("-" * 52)
    for key, n, m in zip(keys, counts, means):
        print(f"{key!s:<20} | {n:>8} | {m:>18.2f}")
