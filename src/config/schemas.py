from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PopulationConfig:
    size: int
    initial_infected_fraction: Optional[float] = None


@dataclass
class DiseaseConfig:
    infection_rate: float
    recovery_rate: float


@dataclass
class BehaviorConfig:
    contact_tracing_fraction: float = 0.0
    quarantine_fraction: float = 0.0
    masked_fraction: float = 0.0
    introvert_fraction: float = 0.0
    introvert_avoidance_rate: float = 0.5


@dataclass
class SimulationConfig:
    max_days: int
    n_partitions: int = 1
    n_workers: int = 1


@dataclass
class OutputConfig:
    output_dir: str = "outputs/sir_simulation"
    out_file_name: str = ""
    save_results: bool = True
    generate_plots: bool = True
    save_frames: bool = False
    show: bool = False
    frame_duration: int = 50


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: str = "sir_simulation.log"


@dataclass
class AppConfig:
    population: PopulationConfig
    disease: DiseaseConfig
    simulation: SimulationConfig
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    random_seed: Optional[int] = None
