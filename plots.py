"""
Charts for the batch timing analysis.

Each function writes one PNG and closes the figure. Nothing here feeds back
into computed results.
"""

import numpy as np
import matplotlib.pyplot as plt

from fit_distributions import density


def plot_duration_histogram(upper_edges, counts, title, filename):
    """Column chart of histogram counts against each bin's upper edge."""
    fig, ax = plt.subplots(figsize=(12, 5))
    upper_edges = np.asarray(upper_edges, dtype=float)
    width = np.diff(upper_edges).mean() if len(upper_edges) > 1 else 1.0
    ax.bar(upper_edges - width, counts, width=width, align='edge',
           color='blue', alpha=0.6, edgecolor='black')

    ax.set_xlabel('Duration (seconds)', fontsize=12)
    ax.set_ylabel('Count', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(filename, dpi=150, bbox_inches='tight')
    print(f"  Saved: {filename}")
    plt.close(fig)


def plot_fit_comparison(data, ranking, title, filename):
    """Plot ranked fits against the sample: PDF over histogram, then CDFs."""
    data = np.asarray(data, dtype=float)
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 10))
    x_range = np.linspace(data.min(), data.max(), 1000)

    # ---- Plot 1: PDF Comparison ----
    ax1.hist(data, bins=50, density=True, alpha=0.6, color='blue',
             edgecolor='black', label='Observed data')
    for fit in ranking:
        ax1.plot(x_range, density(fit, x_range), linewidth=2,
                 label=f'{fit.rank}. {fit.name} (KS={fit.ks_stat:.3f})')

    ax1.set_xlabel('Duration (seconds)', fontsize=12)
    ax1.set_ylabel('Probability Density', fontsize=12)
    ax1.set_title(f'{title} - Distribution Fit', fontsize=14, fontweight='bold')
    ax1.legend(fontsize=10)
    ax1.grid(True, alpha=0.3)

    # ---- Plot 2: CDF Comparison ----
    sorted_data = np.sort(data)
    empirical_cdf = np.arange(1, len(sorted_data) + 1) / len(sorted_data)
    ax2.plot(sorted_data, empirical_cdf, 'b-', linewidth=2,
             label='Empirical CDF', alpha=0.7)
    for fit in ranking:
        ax2.plot(x_range, fit.frozen.cdf(x_range), '--', linewidth=2,
                 label=f'{fit.name} CDF')

    ax2.set_xlabel('Duration (seconds)', fontsize=12)
    ax2.set_ylabel('Cumulative Probability', fontsize=12)
    ax2.set_title(f'{title} - Cumulative Distribution', fontsize=14, fontweight='bold')
    ax2.legend(fontsize=10)
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(filename, dpi=150, bbox_inches='tight')
    print(f"  Saved: {filename}")
    plt.close(fig)


def plot_simulated_sample(simulated, fit, filename):
    """Histogram of draws simulated from a fitted distribution."""
    fig, ax = plt.subplots(figsize=(12, 5))
    ax.hist(simulated, bins=50, alpha=0.6, color='orange', edgecolor='black',
            label=f'{len(simulated)} draws')

    ax.set_xlabel('Duration (seconds)', fontsize=12)
    ax.set_ylabel('Count', fontsize=12)
    ax.set_title(f'Simulated {fit.name} Durations', fontsize=14, fontweight='bold')
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(filename, dpi=150, bbox_inches='tight')
    print(f"  Saved: {filename}")
    plt.close(fig)


def plot_load_vs_duration(keys, means, counts, xlabel, filename):
    """Two aligned panels: rows per bucket and mean duration per bucket."""
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    ax1.bar(keys, counts, color='grey', edgecolor='black')
    ax1.set_ylabel('Rows', fontsize=12)
    ax1.set_title('Load vs Mean Duration', fontsize=14, fontweight='bold')
    ax1.grid(True, alpha=0.3)

    ax2.plot(keys, means, 'g-o', linewidth=2)
    ax2.set_xlabel(xlabel, fontsize=12)
    ax2.set_ylabel('Mean Duration (seconds)', fontsize=12)
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(filename, dpi=150, bbox_inches='tight')
    print(f"  Saved: {filename}")
    plt.close(fig)
