from dataclasses import dataclass, field
from typing import Any, Dict

import yaml

from .exceptions import ConfigurationError

_REQUIRED_KEYS = {
    "data": ["label_column", "positive_label"],
    "split": ["train_fraction"],
    "grid": ["cp", "minsplit", "maxdepth"],
}

_POLICIES = {"lexicographic", "weighted"}


@dataclass
class Config:
    """Configuration object loaded from YAML."""
    data: Dict[str, Any]
    features: Dict[str, Any]
    balancing: Dict[str, Any]
    split: Dict[str, Any]
    grid: Dict[str, Any]
    evaluation: Dict[str, Any] = field(default_factory=dict)
    selection: Dict[str, Any] = field(default_factory=dict)
    output: Dict[str, Any] = field(default_factory=dict)
    seed: int = 42
    n_jobs: int = 1

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        with open(path, "r") as f:
            cfg = yaml.safe_load(f)
        return cls.from_dict(cfg)

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "Config":
        try:
            config = cls(**cfg)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid configuration layout: {exc}") from exc
        config.validate()
        return config

    def validate(self) -> None:
        """Check structural validity; grid values are checked per grid point."""
        for section, keys in _REQUIRED_KEYS.items():
            values = getattr(self, section) or {}
            missing = [k for k in keys if k not in values]
            if missing:
                raise ConfigurationError(f"Section '{section}' is missing keys: {missing}")

        if isinstance(self.seed, bool) or not isinstance(self.seed, int):
            raise ConfigurationError(f"seed must be an integer, got {self.seed!r}")
        if isinstance(self.n_jobs, bool) or not isinstance(self.n_jobs, int) or self.n_jobs == 0:
            raise ConfigurationError(f"n_jobs must be a non-zero integer, got {self.n_jobs!r}")

        fraction = self.split["train_fraction"]
        if not isinstance(fraction, (int, float)) or not 0.0 < fraction < 1.0:
            raise ConfigurationError(f"split.train_fraction must be in (0, 1), got {fraction!r}")

        k = self.balancing.get("k_neighbors", 5)
        if isinstance(k, bool) or not isinstance(k, int) or k < 1:
            raise ConfigurationError(f"balancing.k_neighbors must be a positive integer, got {k!r}")

        for key in ("cp", "minsplit", "maxdepth"):
            values = self.grid[key]
            if not isinstance(values, list) or not values:
                raise ConfigurationError(f"grid.{key} must be a non-empty list")

        strategies = self.grid.get("strategies", ["stopping"])
        unknown = set(strategies) - {"stopping", "pruning"}
        if not strategies or unknown:
            raise ConfigurationError(f"grid.strategies has unknown entries: {sorted(unknown)}")

        policy = self.selection.get("policy", "lexicographic")
        if policy not in _POLICIES:
            raise ConfigurationError(
                f"selection.policy must be one of {sorted(_POLICIES)}, got {policy!r}"
            )
