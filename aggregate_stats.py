"""
Descriptive statistics over timing columns.

Grouping and reducing are kept apart: ``TimingTable.group_by`` partitions the
rows, ``reduce_groups`` applies a reducer to one column of every partition.
Reductions over zero values raise EmptyAggregateInput rather than returning
a placeholder number.
"""

import math

import numpy as np

from errors import EmptyAggregateInput, UnknownGroupKey


def _values(values, what):
    array = np.asarray(values, dtype=float)
    if array.size == 0:
        raise EmptyAggregateInput(what)
    return array


def mean(values):
    return float(np.mean(_values(values, 'mean')))


def std(values):
    """Population standard deviation."""
    return float(np.std(_values(values, 'std')))


def maximum(values):
    return float(np.max(_values(values, 'max')))


def minimum(values):
    return float(np.min(_values(values, 'min')))


def count(values):
    if len(values) == 0:
        raise EmptyAggregateInput('count')
    return len(values)


def percentile(values, p):
    """
    Nearest-rank percentile without interpolation.

    Sorts ascending and returns the value at index ``floor(n * p / 100)``.
    ``p = 100`` would index one past the end, so it is clamped to the last
    value (the maximum).

    Raises:
        ValueError: if p is outside [0, 100]
        EmptyAggregateInput: if values is empty
    """
    if not 0 <= p <= 100:
        raise ValueError(f"percentile must be within [0, 100], got {p}")
    ordered = np.sort(_values(values, f'p{p:g}'))
    index = min(int(math.floor(len(ordered) * p / 100)), len(ordered) - 1)
    return float(ordered[index])


# ============================================================================
# Grouped aggregates
# ============================================================================

def reduce_groups(groups, column, reducer):
    """
    Apply ``reducer`` to one column of every group.

    Args:
        groups: dict of {key: TimingTable} from TimingTable.group_by
        column: column name to reduce
        reducer: function taking a sequence of values

    Returns:
        dict: {key: reduced value}
    """
    return {key: reducer(table.column(column)) for key, table in groups.items()}


def grouped_mean(table, key_fn, value_column):
    return reduce_groups(table.group_by(key_fn), value_column, mean)


def grouped_max(table, key_fn, value_column):
    return reduce_groups(table.group_by(key_fn), value_column, maximum)


def grouped_count(table, key_fn):
    return {key: len(group) for key, group in table.group_by(key_fn).items()}


def select_group(groups, key):
    """Return the group for ``key``; raise UnknownGroupKey if it has no rows."""
    group = groups.get(key)
    if group is None or len(group) == 0:
        raise UnknownGroupKey(key, groups.keys())
    return group


def top_group(aggregate):
    """
    Return the (key, value) pair with the highest value.

    Keys are visited in sorted order, so ties go to the smallest key.
    """
    if not aggregate:
        raise EmptyAggregateInput('top group')
    best_key = None
    for key in sorted(aggregate):
        if best_key is None or aggregate[key] > aggregate[best_key]:
            best_key = key
    return best_key, aggregate[best_key]


# ============================================================================
# Summaries
# ============================================================================

def describe(values, percentiles=(50, 90, 95, 99)):
    """
    Summarise a numeric sample.

    Returns:
        dict: count, mean, std, min, max and one 'p<N>' entry per percentile
    """
    array = _values(values, 'summary')
    summary = {
        'count': count(array),
        'mean': mean(array),
        'std': std(array),
        'min': minimum(array),
        'max': maximum(array),
    }
    for p in percentiles:
        summary[f'p{p:g}'] = percentile(array, p)
    return summary


def histogram(values, bins=100):
    """
    Bin a sample into equal-width bins.

    Returns:
        tuple: (upper_edges, counts), both of length ``bins``
    """
    counts, edges = np.histogram(_values(values, 'histogram'), bins=bins)
    return edges[1:], counts


def format_metric(values):
    """Format values as mean ± std, or a single value."""
    array = np.asarray(values, dtype=float)

    if array.size == 0:
        return "N/A"

    if array.size == 1:
        return f"{array[0]:.2f}"

    return f"{np.mean(array):.2f} ± {np.std(array):.2f}"
