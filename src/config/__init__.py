from pathlib import Path
from typing import List, Optional

from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf

from sir_grid.behavior import BehaviorMix
from utils.logging import log_call
from utils.validation import validate_config

from .schemas import AppConfig

CONFIG_DIR = Path(__file__).resolve().parents[2] / "configs"


@log_call
def apply_schema(cfg: DictConfig) -> DictConfig:
    """Merge a raw config into the structured schema, checking types and keys."""
    return OmegaConf.merge(OmegaConf.structured(AppConfig), cfg)


@log_call
def load_config(overrides: Optional[List[str]] = None) -> DictConfig:
    """Load and validate a configuration using Hydra."""

    overrides = overrides or []
    with initialize_config_dir(
        CONFIG_DIR.resolve().as_posix(), version_base=None
    ):
        cfg = compose(config_name="config", overrides=overrides)
    cfg = apply_schema(cfg)
    validate_config(cfg)
    return cfg


@log_call
def behavior_mix(cfg: DictConfig) -> BehaviorMix:
    """Population behavior fractions described by ``cfg.behavior``."""
    return BehaviorMix(
        contact_tracing=cfg.behavior.contact_tracing_fraction,
        quarantine=cfg.behavior.quarantine_fraction,
        masked=cfg.behavior.masked_fraction,
        introvert=cfg.behavior.introvert_fraction,
        avoidance_rate=cfg.behavior.introvert_avoidance_rate,
    )
