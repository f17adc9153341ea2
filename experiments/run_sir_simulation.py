#!/usr/bin/env python3
"""
SIR Grid Simulation Experiment Runner

This script runs one SIR cellular automaton epidemic using SIRSimulation
with Hydra configuration management.

Usage:
    python experiments/run_sir_simulation.py
    python experiments/run_sir_simulation.py behavior=mixed population=large
    python experiments/run_sir_simulation.py disease.infection_rate=0.3 output.save_frames=true
"""

import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict

import pandas as pd

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import hydra  # noqa: E402
from omegaconf import DictConfig, OmegaConf  # noqa: E402

from config import apply_schema, behavior_mix  # noqa: E402
from sir_grid import (  # noqa: E402
    DemographicsWriter,
    SIRSimulation,
    summarize_history,
)
from sir_grid.visualize import (  # noqa: E402
    GridVisualizer,
    plot_demographics,
    save_snapshot,
)
from utils.validation import validate_config  # noqa: E402


def setup_logging(cfg: DictConfig) -> None:
    """Configure logging for the simulation."""
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper()),
        format=cfg.logging.log_format,
        handlers=[
            logging.FileHandler(cfg.logging.log_file),
            logging.StreamHandler()
        ],
        force=True
    )


def create_output_directory(cfg: DictConfig) -> Path:
    """Create output directory for simulation results."""
    output_dir = Path(cfg.output.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def initialize_simulation(cfg: DictConfig, output_dir: Path) -> SIRSimulation:
    """Build the simulation and its collaborators from the configuration."""
    logging.info("Initializing SIRSimulation...")

    writer = None
    if cfg.output.save_results:
        writer = DemographicsWriter(cfg.output.out_file_name, output_dir)

    visualizer = None
    if cfg.output.save_frames or cfg.output.show:
        visualizer = GridVisualizer(
            output_dir=output_dir / "frames",
            frame_duration=cfg.output.frame_duration,
            save_frames=cfg.output.save_frames,
            show=cfg.output.show
        )

    simulation = SIRSimulation(
        size=cfg.population.size,
        infection_rate=cfg.disease.infection_rate,
        recovery_rate=cfg.disease.recovery_rate,
        max_days=cfg.simulation.max_days,
        mix=behavior_mix(cfg),
        initial_infected_fraction=cfg.population.initial_infected_fraction,
        random_seed=cfg.random_seed,
        n_partitions=cfg.simulation.n_partitions,
        n_workers=cfg.simulation.n_workers,
        writer=writer,
        visualizer=visualizer
    )
    simulation.initialize()

    logging.info(f"Simulation initialized with {cfg.population.size ** 2} cells "
                 f"(seeded fraction {simulation.seeded_fraction:.3f})")
    return simulation


def run_simulation(simulation: SIRSimulation) -> pd.DataFrame:
    """Run the simulation until the epidemic dies out or the day limit."""
    logging.info("Starting simulation...")
    start_time = time.time()

    history = simulation.run()

    duration = time.time() - start_time
    logging.info(f"Simulation completed in {duration:.2f} seconds "
                 f"({simulation.day} days)")
    return history


def compute_summary_statistics(
    simulation: SIRSimulation,
    history: pd.DataFrame,
    cfg: DictConfig
) -> Dict[str, Any]:
    """Collect run parameters and epidemic statistics."""
    logging.info("Computing summary statistics...")

    stats: Dict[str, Any] = {
        'simulation_parameters': {
            'size': cfg.population.size,
            'population': cfg.population.size ** 2,
            'infection_rate': cfg.disease.infection_rate,
            'recovery_rate': cfg.disease.recovery_rate,
            'max_days': cfg.simulation.max_days,
            'seeded_fraction': simulation.seeded_fraction,
            'behavior_mix': OmegaConf.to_container(cfg.behavior),
            'random_seed': cfg.random_seed
        }
    }
    if not history.empty:
        stats['epidemic_statistics'] = summarize_history(history)
    return stats


def create_visualizations(
    simulation: SIRSimulation,
    history: pd.DataFrame,
    cfg: DictConfig,
    output_dir: Path
) -> None:
    """Create visualization plots."""
    if not cfg.output.generate_plots:
        return

    logging.info("Creating visualizations...")
    if not history.empty:
        plot_demographics(history, output_dir / "sir_curves.png")
    save_snapshot(
        simulation.grid,
        output_dir / "final_state.png",
        day=max(simulation.day - 1, 0)
    )
    logging.info(f"Visualizations saved to {output_dir}")


def save_results(stats: Dict[str, Any], cfg: DictConfig, output_dir: Path) -> None:
    """Save summary statistics next to the demographics CSV."""
    if not cfg.output.save_results:
        return

    stats_file = output_dir / "summary_statistics.json"
    with open(stats_file, 'w') as f:
        json.dump(stats, f, indent=2)
    logging.info(f"Summary statistics saved to {stats_file}")


@hydra.main(version_base=None, config_path="../configs", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main experiment runner."""
    cfg = apply_schema(cfg)
    validate_config(cfg)

    # Setup
    setup_logging(cfg)
    logging.info("Starting SIR grid simulation experiment")
    logging.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    output_dir = create_output_directory(cfg)
    logging.info(f"Output directory: {output_dir}")

    simulation = initialize_simulation(cfg, output_dir)
    history = run_simulation(simulation)
    stats = compute_summary_statistics(simulation, history, cfg)

    create_visualizations(simulation, history, cfg, output_dir)
    save_results(stats, cfg, output_dir)

    # Print summary
    logging.info("Simulation completed successfully!")
    epidemic = stats.get('epidemic_statistics')
    if epidemic:
        logging.info("Summary Statistics:")
        logging.info(f"  - Days simulated: {epidemic['days_simulated']}")
        logging.info(f"  - Peak infectious: {epidemic['peak_infectious']} "
                     f"on day {epidemic['peak_day']}")
        logging.info(f"  - Attack rate: {epidemic['attack_rate']:.3f}")
        logging.info(f"  - Epidemic extinct: {epidemic['extinct']}")
    logging.info(f"Results saved to: {output_dir}")


if __name__ == "__main__":
    main()
