"""
Configuration management and loading.

A LedgerConfig can be built in code or loaded from a YAML file:

    max_claim_amount: 5000
    settlement_delay_seconds: 3
    poll_interval_seconds: 0.25
    seed_sample_data: false
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict

import yaml

from .core import MAX_CLAIM_AMOUNT, SETTLEMENT_DELAY


@dataclass(frozen=True)
class LedgerConfig:
    """Policy and runtime settings for one ledger."""
    max_claim_amount: Decimal = MAX_CLAIM_AMOUNT
    settlement_delay: timedelta = SETTLEMENT_DELAY
    poll_interval: float = 0.25
    seed_sample_data: bool = False

    def __post_init__(self):
        """Validate settings."""
        if not isinstance(self.max_claim_amount, Decimal):
            raise ValueError("max_claim_amount must be a Decimal")
        if not self.max_claim_amount.is_finite() or self.max_claim_amount <= 0:
            raise ValueError("max_claim_amount must be > 0")
        if self.settlement_delay < timedelta(0):
            raise ValueError("settlement_delay must be >= 0")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")


_ALLOWED_KEYS = {
    'max_claim_amount',
    'settlement_delay_seconds',
    'poll_interval_seconds',
    'seed_sample_data',
}


def config_from_dict(raw_config: Dict[str, Any]) -> LedgerConfig:
    """Build a LedgerConfig from a mapping, rejecting unknown keys.

    Raises:
        ValueError: If a key is unknown or a value is invalid
    """
    unknown_keys = set(raw_config.keys()) - _ALLOWED_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    kwargs: Dict[str, Any] = {}

    if 'max_claim_amount' in raw_config:
        value = raw_config['max_claim_amount']
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError("'max_claim_amount' must be a number")
        try:
            kwargs['max_claim_amount'] = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"'max_claim_amount' must be a number, got {value!r}")

    if 'settlement_delay_seconds' in raw_config:
        value = raw_config['settlement_delay_seconds']
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("'settlement_delay_seconds' must be a number")
        kwargs['settlement_delay'] = timedelta(seconds=value)

    if 'poll_interval_seconds' in raw_config:
        value = raw_config['poll_interval_seconds']
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("'poll_interval_seconds' must be a number")
        kwargs['poll_interval'] = float(value)

    if 'seed_sample_data' in raw_config:
        value = raw_config['seed_sample_data']
        if not isinstance(value, bool):
            raise ValueError("'seed_sample_data' must be true or false")
        kwargs['seed_sample_data'] = value

    return LedgerConfig(**kwargs)


def load_config(path: str) -> LedgerConfig:
    """Load and validate ledger configuration from a YAML file.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Ledger config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return LedgerConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")
    return config_from_dict(raw_config)
