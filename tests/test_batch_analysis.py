"""
End-to-end tests for the batch analysis driver.

Tests cover:
- Full run on a synthetic log (step means, slowest step, fit ranking, queries)
- Chart output
- Lenient loading
- Single-row and zero-duration logs
- Per-step summary table
- Command line entry point
"""

import sys
import uuid

import numpy as np
import pytest

import batch_analysis
from batch_analysis import SIMULATION_SIZE, load_table, run_analysis
from errors import MalformedRecord
from timing_table import DURATION


def render_log(records, steps_per_batch=4):
    """Render records as a batch log with one UUID header per batch."""
    lines = []
    for i, record in enumerate(records):
        if i % steps_per_batch == 0:
            lines.append(f"{uuid.UUID(int=i + 1)} batch {i // steps_per_batch}")
        lines.append(
            f"{record.start.isoformat(timespec='microseconds')},"
            f"{record.end.isoformat(timespec='microseconds')},{record.step}"
        )
    return '\n'.join(lines) + '\n'


@pytest.fixture
def synthetic_log(synthetic_records):
    return render_log(synthetic_records)


class TestRunAnalysis:
    """Test the full workflow on synthetic data."""

    @pytest.fixture
    def results(self, synthetic_log):
        return run_analysis(synthetic_log, seed=123)

    def test_rows_loaded(self, results, synthetic_records):
        assert results['rows'] == len(synthetic_records)
        assert results['errors'] == []

    def test_global_mean(self, results, synthetic_records):
        expected = np.mean([(r.end - r.start).total_seconds() for r in synthetic_records])
        assert results['mean_duration'] == pytest.approx(expected)

    def test_slowest_step(self, results, gamma_durations):
        assert results['slowest_step'] == 'Step 2'
        assert results['step_means']['Step 2'] == pytest.approx(np.mean(gamma_durations))
        assert results['slowest_summary']['max'] == pytest.approx(np.max(gamma_durations))

    def test_fit_ranking(self, results):
        assert [fit.name for fit in results['ranking']] == ['Gamma', 'Normal', 'Poisson']

    def test_cdf_queries(self, results):
        best = results['ranking'][0]
        assert results['cdf'] == pytest.approx(best.frozen.cdf(100.0))
        assert results['tail'] == pytest.approx(best.frozen.sf(50.0))
        assert 0.99 < results['cdf'] < 1.0
        assert 0.0 < results['tail'] < 0.1

    def test_simulation_is_seeded(self, results, synthetic_log):
        assert len(results['simulated']) == SIMULATION_SIZE
        again = run_analysis(synthetic_log, seed=123)
        np.testing.assert_array_equal(results['simulated'], again['simulated'])

    def test_correlation_summaries(self, results):
        assert results['hour_of_day']['buckets'] == 24
        assert results['hours_since_origin']['buckets'] > 24

    def test_mixture_reported(self, results):
        assert results['mixture'] is not None
        assert results['mixture']['weights'].sum() == pytest.approx(1.0)


class TestCharts:
    """Test chart output."""

    def test_charts_written(self, sample_log, tmp_path):
        out = tmp_path / 'charts'
        run_analysis(sample_log, output_dir=out, seed=1)
        written = sorted(p.name for p in out.glob('*.png'))
        assert written == [
            'load_vs_duration_by_hour.png',
            'load_vs_duration_over_time.png',
            'simulated_durations.png',
            'step_duration_fits.png',
            'step_duration_histogram.png',
        ]


class TestLoading:
    """Test loading policies."""

    def test_fail_fast_by_default(self, sample_log):
        with pytest.raises(MalformedRecord):
            load_table(sample_log + "not,a,record\n")

    def test_lenient_skips_bad_rows(self, sample_log):
        text = sample_log + "not,a,record\n"
        text += "1/02/2017 2:00:10 p.m.,1/02/2017 2:00:00 p.m.,Step 1\n"
        table, errors = load_table(text, lenient=True)
        assert len(table) == 8
        assert len(errors) == 2
        assert table.column(DURATION).min() >= 0

    def test_lenient_run_reports_errors(self, sample_log, capsys):
        results = run_analysis(sample_log + "oops\n", lenient=True, seed=1)
        assert len(results['errors']) == 1
        assert "Skipped 1 invalid row(s)" in capsys.readouterr().out


class TestMain:
    """Test the command line entry point."""

    def test_main_reads_file(self, sample_log, tmp_path, monkeypatch, capsys):
        path = tmp_path / 'sampleBatches.txt'
        path.write_text(sample_log, encoding='utf-8')
        monkeypatch.setattr(sys, 'argv', ['batch_analysis.py', str(path), str(tmp_path / 'out')])

        batch_analysis.main()

        out = capsys.readouterr().out
        assert "Slowest step: Step 2 (25.00 sec)" in out
        assert (tmp_path / 'out' / 'step_duration_histogram.png').exists()

    def test_main_rejects_extra_arguments(self, monkeypatch):
        monkeypatch.setattr(sys, 'argv', ['batch_analysis.py', 'a', 'b', 'c'])
        with pytest.raises(SystemExit):
            batch_analysis.main()


ZERO_DURATION_LOG = """\
3f2504e0-4f89-11d3-9a0c-0305e82c3301 batch 1
1/02/2017 9:00:00 a.m.,1/02/2017 9:00:00 a.m.,Step A
1/02/2017 9:00:00 a.m.,1/02/2017 9:00:01 a.m.,Step B
3f2504e0-4f89-11d3-9a0c-0305e82c3302 batch 2
1/02/2017 10:00:00 a.m.,1/02/2017 10:00:30 a.m.,Step A
1/02/2017 10:00:30 a.m.,1/02/2017 10:00:31 a.m.,Step B
3f2504e0-4f89-11d3-9a0c-0305e82c3303 batch 3
1/02/2017 11:00:00 a.m.,1/02/2017 11:00:50 a.m.,Step A
1/02/2017 11:00:50 a.m.,1/02/2017 11:00:52 a.m.,Step B
"""


class TestSmallLogs:
    """Test logs too small or too degenerate for every analysis stage."""

    def test_single_row_log(self, capsys):
        results = run_analysis("1/02/2017 9:00:00 a.m.,1/02/2017 9:00:05 a.m.,Step 1\n", seed=1)
        assert results['rows'] == 1
        assert results['slowest_step'] == 'Step 1'
        assert results['ranking'] is None
        assert results['unranked'] == ['Gamma', 'Normal', 'Poisson']
        assert results['mixture'] is None
        assert results['hours_since_origin']['buckets'] == 1
        assert "Hours Since Origin" in capsys.readouterr().out

    def test_zero_duration_leaves_gamma_unranked(self, capsys):
        results = run_analysis(ZERO_DURATION_LOG, seed=1)
        out = capsys.readouterr().out
        assert results['slowest_step'] == 'Step A'
        assert results['unranked'] == ['Gamma']
        assert results['ranking']
        assert 'Gamma' not in {fit.name for fit in results['ranking']}
        assert "(not ranked: Gamma)" in out
        assert "Gamma          : Failed to fit - requires strictly positive values" in out

    def test_all_candidates_ranked_reports_nothing_unranked(self, synthetic_log, capsys):
        results = run_analysis(synthetic_log, seed=1)
        assert results['unranked'] == []
        assert "not ranked" not in capsys.readouterr().out


class TestStepTable:
    """Test the per-step summary table."""

    def test_mean_and_spread_per_step(self, sample_log, capsys):
        run_analysis(sample_log, seed=1)
        out = capsys.readouterr().out
        assert "Mean ± Std (s)" in out
        step_2 = next(line for line in out.splitlines() if line.startswith('Step 2 ') and '|' in line)
        assert "25.00 ± 5.00" in step_2
        assert step_2.rstrip().endswith("30.00")
