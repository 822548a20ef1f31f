"""Shared fixtures: small batch logs and gamma-shaped step samples."""

from datetime import datetime, timedelta

import matplotlib
import numpy as np
import pytest

matplotlib.use('Agg')

from record_parser import TimingRecord, parse_records  # noqa: E402
from timing_table import TimingTable  # noqa: E402


SAMPLE_LOG = """\
3f2504e0-4f89-11d3-9a0c-0305e82c3301 batch started
1/02/2017 9:00:00 a.m.,1/02/2017 9:00:05 a.m.,Step 1
1/02/2017 9:00:05 a.m.,1/02/2017 9:00:35 a.m.,Step 2
1/02/2017 9:00:35 a.m.,1/02/2017 9:00:43 a.m.,Step 3
1/02/2017 9:00:43 a.m.,1/02/2017 9:00:45 a.m.,Step 4
A1B2C3D4-E5F6-4A5B-9C8D-0123456789AB batch started

1/02/2017 1:10:00 p.m.,1/02/2017 1:10:03 p.m.,Step 1
1/02/2017 1:10:03 p.m.,1/02/2017 1:10:23 p.m.,Step 2
1/02/2017 1:10:23 p.m.,1/02/2017 1:10:33 p.m.,Step 3
1/02/2017 1:10:33 p.m.,1/02/2017 1:10:34 p.m.,Step 4
"""


@pytest.fixture
def sample_log():
    return SAMPLE_LOG


@pytest.fixture
def sample_table():
    return TimingTable.load(parse_records(SAMPLE_LOG))


def make_records(durations_by_step, start=datetime(2017, 2, 1, 8, 0, 0), gap=timedelta(minutes=7)):
    """
    Build records cycling through steps, one batch per index.

    Each step starts where the previous one ended; batches are ``gap`` apart.
    """
    steps = sorted(durations_by_step)
    n = min(len(values) for values in durations_by_step.values())
    records = []
    batch_start = start
    for i in range(n):
        t = batch_start
        for step in steps:
            end = t + timedelta(seconds=float(durations_by_step[step][i]))
            records.append(TimingRecord(t, end, step))
            t = end
        batch_start += gap
    return records


@pytest.fixture
def gamma_durations():
    rng = np.random.default_rng(7)
    return np.round(rng.gamma(1.5, 10.0, size=2000), 6)


@pytest.fixture
def synthetic_records(gamma_durations):
    rng = np.random.default_rng(11)
    n = len(gamma_durations)
    return make_records({
        'Step 1': np.round(rng.uniform(2.0, 8.0, size=n), 3),
        'Step 2': gamma_durations,
        'Step 3': np.round(rng.uniform(5.0, 12.0, size=n), 3),
        'Step 4': np.round(rng.uniform(0.5, 2.0, size=n), 3),
    })
