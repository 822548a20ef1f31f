"""
Distribution Fitting for Step Durations

Fits candidate distributions to a duration sample, ranks them by the
Kolmogorov-Smirnov statistic and answers CDF / tail probability queries on
the chosen fit.

Gamma, Lognormal, Exponential and Weibull are fitted with loc pinned at 0 and
need strictly positive data. A single zero-second duration is enough to drop
them from the ranking, in which case the best fit (and every query on it) is
taken from the remaining families such as Normal or Poisson.
"""

from dataclasses import dataclass, field

import numpy as np
from scipy import stats
from sklearn.mixture import GaussianMixture

from errors import DistributionFitFailure


DEFAULT_CANDIDATES = ('Gamma', 'Normal', 'Poisson')
EXTENDED_CANDIDATES = DEFAULT_CANDIDATES + ('Lognormal', 'Exponential', 'Weibull')

# families whose fit pins loc at 0 and needs strictly positive data
POSITIVE_FAMILIES = {'Gamma', 'Lognormal', 'Exponential', 'Weibull'}


@dataclass
class FittedDistribution:
    """A fitted family with its goodness-of-fit and frozen scipy object."""

    name: str
    params: dict
    ks_stat: float
    p_value: float
    frozen: object = field(repr=False)
    rank: int = None

    @property
    def discrete(self):
        return self.name == 'Poisson'


# ============================================================================
# Estimation
# ============================================================================

def _estimate(family, data):
    """Return (params, frozen distribution) for one family."""
    if family == 'Gamma':
        a, loc, scale = stats.gamma.fit(data, floc=0)
        return {'shape': a, 'scale': scale}, stats.gamma(a, loc=loc, scale=scale)

    if family == 'Normal':
        loc, scale = stats.norm.fit(data)
        return {'mean': loc, 'stdev': scale}, stats.norm(loc=loc, scale=scale)

    if family == 'Poisson':
        mu = float(np.mean(data))
        return {'lambda': mu}, stats.poisson(mu)

    if family == 'Lognormal':
        s, loc, scale = stats.lognorm.fit(data, floc=0)
        return {'sigma': s, 'mean': float(np.log(scale))}, stats.lognorm(s, loc=loc, scale=scale)

    if family == 'Exponential':
        loc, scale = stats.expon.fit(data, floc=0)
        return {'scale': scale}, stats.expon(loc=loc, scale=scale)

    if family == 'Weibull':
        c, loc, scale = stats.weibull_min.fit(data, floc=0)
        return {'shape': c, 'scale': scale}, stats.weibull_min(c, loc=loc, scale=scale)

    raise ValueError(f"unknown distribution family {family!r}")


def fit_distribution(sample, family):
    """
    Estimate one family from the sample and score it with the KS statistic.

    Raises:
        ValueError: if the family is unknown
        DistributionFitFailure: if the sample cannot support the estimate
    """
    if family not in EXTENDED_CANDIDATES:
        raise ValueError(f"unknown distribution family {family!r}")

    data = np.asarray(sample, dtype=float)

    if data.size < 2:
        raise DistributionFitFailure(family, f"need at least 2 values, got {data.size}")
    if not np.all(np.isfinite(data)):
        raise DistributionFitFailure(family, "sample contains non-finite values")
    if np.ptp(data) == 0:
        raise DistributionFitFailure(family, "sample has zero variance")
    if family in POSITIVE_FAMILIES and np.any(data <= 0):
        raise DistributionFitFailure(family, "requires strictly positive values")
    if family == 'Poisson' and np.any(data < 0):
        raise DistributionFitFailure(family, "requires non-negative values")

    try:
        params, frozen = _estimate(family, data)
        ks_stat, p_value = stats.kstest(data, frozen.cdf)
    except (ValueError, RuntimeError, FloatingPointError) as e:
        raise DistributionFitFailure(family, str(e)) from e

    params = {name: float(value) for name, value in params.items()}
    if not all(np.isfinite(value) for value in params.values()):
        raise DistributionFitFailure(family, f"non-finite parameters {params}")

    return FittedDistribution(family, params, float(ks_stat), float(p_value), frozen)


def rank_candidates(sample, candidates=DEFAULT_CANDIDATES, strict=False):
    """
    Fit every candidate family and order them best (lowest KS) to worst.

    The sort is stable, so equal KS statistics keep the candidates' order.
    Families that fail to fit are reported and left out of the ranking
    unless ``strict`` is set, in which case the first failure propagates.

    Returns:
        list: FittedDistribution with ``rank`` set from 1
    """
    fits = []
    failures = []

    for family in candidates:
        try:
            fits.append(fit_distribution(sample, family))
        except DistributionFitFailure as e:
            if strict:
                raise
            print(f"    {family:15s}: Failed to fit - {e.reason}")
            failures.append(e)

    if not fits:
        reasons = '; '.join(str(e) for e in failures)
        raise DistributionFitFailure('all candidates', reasons or "no candidates given")

    ranking = sorted(fits, key=lambda fit: fit.ks_stat)
    for rank, fit in enumerate(ranking, start=1):
        fit.rank = rank

    return ranking


def fit_gmm_2_components(data, random_state=42):
    """
    Fit a 2-component Gaussian Mixture Model.

    Returns:
        tuple: (means, stds, weights, bic, aic, gmm_model), components sorted by mean
    """
    data = np.asarray(data, dtype=float)
    if data.size < 2:
        raise DistributionFitFailure('GaussianMixture', f"need at least 2 values, got {data.size}")

    gmm = GaussianMixture(n_components=2, random_state=random_state, max_iter=200)
    try:
        gmm.fit(data.reshape(-1, 1))
    except ValueError as e:
        raise DistributionFitFailure('GaussianMixture', str(e)) from e

    # Extract and sort parameters by mean
    means = gmm.means_.flatten()
    stds = np.sqrt(gmm.covariances_.flatten())
    weights = gmm.weights_

    idx = np.argsort(means)
    means = means[idx]
    stds = stds[idx]
    weights = weights[idx]

    bic = gmm.bic(data.reshape(-1, 1))
    aic = gmm.aic(data.reshape(-1, 1))

    return means, stds, weights, bic, aic, gmm


# ============================================================================
# Queries
# ============================================================================

def cdf(fitted, x):
    """Probability of a value at or below x."""
    return float(fitted.frozen.cdf(x))


def complementary_cdf(fitted, x):
    """Probability of a value above x, taken from the survival function."""
    return float(fitted.frozen.sf(x))


def density(fitted, x):
    """PDF for continuous families, PMF (at floor(x)) for Poisson."""
    if fitted.discrete:
        return fitted.frozen.pmf(np.floor(x))
    return fitted.frozen.pdf(x)


def sample(fitted, n, seed=None):
    """Draw n variates from the fit; a fixed seed gives identical draws."""
    if n < 0:
        raise ValueError(f"sample size must be non-negative, got {n}")
    rng = np.random.default_rng(seed)
    return np.asarray(fitted.frozen.rvs(size=n, random_state=rng), dtype=float)


# ============================================================================
# Reporting
# ============================================================================

def print_fit_ranking(data, ranking, name="Distribution Fits"):
    """Print sample statistics and the ranked fits."""
    data = np.asarray(data, dtype=float)

    print(f"\n{name}:")
    print(f"  Sample size: {len(data)}")
    print(f"  Mean: {np.mean(data):.3f} sec")
    print(f"  Median: {np.median(data):.3f} sec")
    print(f"  StdDev: {np.std(data):.3f} sec")
    print(f"  Min: {np.min(data):.3f} sec")
    print(f"  Max: {np.max(data):.3f} sec")

    print(f"\n  Ranked Fits (Kolmogorov-Smirnov test):")
    for fit in ranking:
        params = ', '.join(f"{k}={v:.4f}" for k, v in fit.params.items())
        print(f"    {fit.rank}. {fit.name:15s}: KS={fit.ks_stat:.6f}, "
              f"p-value={fit.p_value:.6f}, {params}")
