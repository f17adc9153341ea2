import logging

from omegaconf import DictConfig

from sir_grid.errors import (
    ConfigurationError,
    require_positive_int,
    require_probability,
)
from utils.logging import log_call

_FRACTIONS = (
    "contact_tracing_fraction",
    "quarantine_fraction",
    "masked_fraction",
    "introvert_fraction",
)


@log_call
def validate_config(cfg: DictConfig) -> None:
    """Reject simulation configs with out-of-range sizes, rates or fractions."""

    require_positive_int("population.size", cfg.population.size)
    if cfg.population.initial_infected_fraction is not None:
        require_probability(
            "population.initial_infected_fraction",
            cfg.population.initial_infected_fraction,
        )
    require_probability("disease.infection_rate", cfg.disease.infection_rate)
    require_probability("disease.recovery_rate", cfg.disease.recovery_rate)

    for name in _FRACTIONS:
        require_probability(f"behavior.{name}", cfg.behavior[name])
    require_probability(
        "behavior.introvert_avoidance_rate", cfg.behavior.introvert_avoidance_rate
    )
    total = sum(cfg.behavior[name] for name in _FRACTIONS)
    if total > 1.0:
        logging.warning(
            "Behavior fractions sum to %.2f; later categories will be starved", total
        )

    if cfg.simulation.max_days < 0:
        raise ConfigurationError("simulation.max_days must not be negative")
    require_positive_int("simulation.n_partitions", cfg.simulation.n_partitions)
    require_positive_int("simulation.n_workers", cfg.simulation.n_workers)
    if cfg.simulation.n_partitions > cfg.population.size ** 2:
        raise ConfigurationError("simulation.n_partitions exceeds the population size")
