#!/usr/bin/env python3
"""
Results Analysis for SIR Grid Simulation Outputs

Loads the demographics CSV and summary statistics written by
experiments/run_sir_simulation.py and prints the headline numbers of the
epidemic, optionally plotting the SIR curves.

Usage:
    python analyze_results.py outputs/sir_simulation/
    python analyze_results.py outputs/sir_simulation/ --plot
    python analyze_results.py --help
"""

import argparse
import json
import os
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from sir_grid import normalize_history, summarize_history  # noqa: E402
from sir_grid.visualize import plot_demographics  # noqa: E402


class SimulationResultsAnalyzer:
    """Analysis helper for one simulation output directory."""

    def __init__(self, results_dir: str):
        """Initialize analyzer with results directory."""
        self.results_dir = Path(results_dir)
        self.history = pd.DataFrame()
        self.stats = {}
        self.load_all_data()

    def load_all_data(self):
        """Load the demographics CSV and summary statistics."""
        print(f"📂 Loading data from {self.results_dir}")

        stats_file = self.results_dir / "summary_statistics.json"
        if stats_file.exists():
            with open(stats_file, 'r') as f:
                self.stats = json.load(f)
            print("✓ Summary statistics loaded")
        else:
            print("⚠️  summary_statistics.json not found")

        csv_files = sorted(self.results_dir.glob("*.csv"))
        if csv_files:
            self.history = normalize_history(pd.read_csv(csv_files[0]))
            print(f"✓ demographics loaded from {csv_files[0].name} "
                  f"({self.history.shape})")
        else:
            print("⚠️  no demographics CSV found")

    def print_summary(self):
        """Print the run parameters and epidemic statistics."""
        print("\n" + "=" * 60)
        print("🦠 SIR GRID SIMULATION RESULTS SUMMARY")
        print("=" * 60)

        params = self.stats.get('simulation_parameters', {})
        if params:
            print("\n📊 SIMULATION PARAMETERS")
            print(f"   Grid: {params.get('size', 'N/A')} x {params.get('size', 'N/A')}")
            print(f"   Infection rate: {params.get('infection_rate', 'N/A')}")
            print(f"   Recovery rate: {params.get('recovery_rate', 'N/A')}")
            print(f"   Max days: {params.get('max_days', 'N/A')}")
            mix = params.get('behavior_mix') or {}
            for name, value in mix.items():
                print(f"   {name}: {value}")

        if self.history.empty:
            print("\n❌ No demographics available")
            return

        summary = summarize_history(self.history)
        print("\n📈 EPIDEMIC")
        print(f"   Days simulated: {summary['days_simulated']}")
        print(f"   Peak infectious: {summary['peak_infectious']:,} "
              f"({summary['peak_infectious_frac']:.1%}) on day {summary['peak_day']}")
        print(f"   Attack rate: {summary['attack_rate']:.1%}")
        print(f"   Final S/I/R: {summary['final_susceptible']:.1%} / "
              f"{summary['final_infectious']:.1%} / {summary['final_recovered']:.1%}")
        print(f"   Epidemic extinct: {'yes' if summary['extinct'] else 'no'}")

    def plot_curves(self, save_path=None):
        """Plot SIR curves, saving them when a path is given."""
        if self.history.empty:
            print("❌ Nothing to plot")
            return
        fig = plot_demographics(self.history, save_path)
        if save_path is None:
            plt.show()
            plt.close(fig)
        else:
            print(f"💾 Curves saved to {save_path}")


def main():
    parser = argparse.ArgumentParser(description="Analyze SIR grid simulation results")
    parser.add_argument("results_dir", help="Directory written by run_sir_simulation.py")
    parser.add_argument("--plot", action="store_true", help="Plot SIR curves")
    parser.add_argument("--save", default=None, help="Save the plot instead of showing it")
    args = parser.parse_args()

    analyzer = SimulationResultsAnalyzer(args.results_dir)
    analyzer.print_summary()
    if args.plot or args.save:
        analyzer.plot_curves(args.save)


if __name__ == "__main__":
    main()
