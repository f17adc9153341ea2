from omegaconf import OmegaConf


def make_valid_config() -> OmegaConf:
    """Return a small, valid simulation config."""

    cfg = OmegaConf.create(
        {
            "population": {
                "size": 10,
                "initial_infected_fraction": 0.05,
            },
            "disease": {
                "infection_rate": 0.2,
                "recovery_rate": 0.1,
            },
            "behavior": {
                "contact_tracing_fraction": 0.1,
                "quarantine_fraction": 0.1,
                "masked_fraction": 0.1,
                "introvert_fraction": 0.1,
                "introvert_avoidance_rate": 0.5,
            },
            "simulation": {
                "max_days": 20,
                "n_partitions": 2,
                "n_workers": 2,
            },
            "random_seed": 1,
        }
    )
    return cfg


def make_invalid_config() -> OmegaConf:
    """Return a config with invalid population size."""

    cfg = make_valid_config()
    cfg.population.size = -1
    return cfg
