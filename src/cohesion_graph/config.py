"""Configuration settings for the cohesion graph."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv


ENV_PREFIX = "COHESION_GRAPH_"

COMMUNITY_ALGORITHMS = ("louvain", "greedy_modularity", "label_propagation")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class CohesionGraphConfig:
    """Configuration class for cohesion graph settings."""

    # Builder settings
    constructor_names: Tuple[str, ...] = ("__init__", "__post_init__")

    # Community detection settings
    community_algorithm: str = "louvain"
    community_resolution: float = 0.7
    community_seed: int = 42
    label_property: str = "community"

    # Recommendation settings
    min_group_size: int = 2
    include_method_only_groups: bool = True

    # Store settings
    store_path: Optional[str] = None
    reset_store: bool = False

    log_level: str = "INFO"

    def __post_init__(self):
        self.constructor_names = tuple(self.constructor_names)
        if self.community_algorithm not in COMMUNITY_ALGORITHMS:
            raise ValueError(
                f"Unknown community algorithm '{self.community_algorithm}', "
                f"expected one of {', '.join(COMMUNITY_ALGORITHMS)}"
            )
        if self.min_group_size < 2:
            raise ValueError("min_group_size must be at least 2")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Unknown log level '{self.log_level}', expected one of {', '.join(LOG_LEVELS)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "constructor_names": list(self.constructor_names),
            "community_algorithm": self.community_algorithm,
            "community_resolution": self.community_resolution,
            "community_seed": self.community_seed,
            "label_property": self.label_property,
            "min_group_size": self.min_group_size,
            "include_method_only_groups": self.include_method_only_groups,
            "store_path": self.store_path,
            "reset_store": self.reset_store,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "CohesionGraphConfig":
        """Create configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "CohesionGraphConfig":
        """Create configuration from COHESION_GRAPH_* variables (and a .env file)."""
        load_dotenv(dotenv_path)
        values: Dict[str, Any] = {}

        store_path = os.getenv(f"{ENV_PREFIX}STORE_PATH")
        if store_path:
            values["store_path"] = store_path
        algorithm = os.getenv(f"{ENV_PREFIX}ALGORITHM")
        if algorithm:
            values["community_algorithm"] = algorithm
        resolution = os.getenv(f"{ENV_PREFIX}RESOLUTION")
        if resolution:
            values["community_resolution"] = float(resolution)
        seed = os.getenv(f"{ENV_PREFIX}SEED")
        if seed:
            values["community_seed"] = int(seed)
        label_property = os.getenv(f"{ENV_PREFIX}LABEL_PROPERTY")
        if label_property:
            values["label_property"] = label_property
        log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            values["log_level"] = log_level.upper()

        return cls(**values)
