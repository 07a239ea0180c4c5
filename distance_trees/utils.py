import argparse
import logging
from dataclasses import asdict, dataclass, fields
from typing import ClassVar, Optional

import yaml

from distance_trees.tree_fitting_methods.ultrametric import Linkage


def setup_logger(name, log_file=None, level=logging.INFO):
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')

    if log_file is not None:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def str2bool(v):
    if isinstance(v, bool):
        return v
    if v.lower() in ('yes', 'true', 't', 'y', '1'):
        return True
    elif v.lower() in ('no', 'false', 'f', 'n', '0'):
        return False
    else:
        raise argparse.ArgumentTypeError('Boolean value expected.')


@dataclass
class TreeConfig:
    method: str = "neighbor_joining"
    linkage: str = "average"
    validate: bool = True
    check_additive: bool = True
    atol: float = 0.0
    log_level: Optional[str] = None

    METHODS: ClassVar[tuple] = ("ultrametric", "neighbor_joining", "additive")
    LOG_LEVELS: ClassVar[tuple] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    def __post_init__(self):
        if self.method not in self.METHODS:
            raise ValueError(f"Unknown method '{self.method}', expected one of {self.METHODS}")
        try:
            self.linkage = Linkage(self.linkage).value
            self.validate = str2bool(self.validate)
            self.check_additive = str2bool(self.check_additive)
            self.atol = float(self.atol)
        except (ValueError, TypeError, AttributeError, argparse.ArgumentTypeError) as e:
            raise ValueError(f"Configuration type error: {e}") from e
        if self.atol < 0:
            raise ValueError(f"atol must be non-negative, got {self.atol}")
        # None leaves the package logger untouched
        if self.log_level is not None:
            self.log_level = str(self.log_level).upper()
            if self.log_level not in self.LOG_LEVELS:
                raise ValueError(f"Unknown log level '{self.log_level}'")

    @classmethod
    def from_dict(cls, data: dict):
        """Creates an instance from a dictionary, validating keys and types."""
        expected_keys = {f.name for f in fields(cls)}
        received_keys = set(data.keys())

        missing_keys = expected_keys - received_keys
        if missing_keys:
            raise ValueError(f"Missing configuration keys: {', '.join(sorted(missing_keys))}")

        extra_keys = received_keys - expected_keys
        if extra_keys:
            raise ValueError(f"Unexpected configuration keys: {', '.join(sorted(extra_keys))}")

        return cls(**data)


def load_config(path):
    """
    Reads a TreeConfig from a YAML file.

    Keys absent from the file take their default values; unknown keys are
    rejected.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must hold a mapping")
    return TreeConfig.from_dict({**asdict(TreeConfig()), **data})
