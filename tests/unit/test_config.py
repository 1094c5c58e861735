"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for ledger configs.
"""

import os
import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal

import pytest
import yaml

from contractor_ledger.config import LedgerConfig, config_from_dict, load_config


class TestLedgerConfig:
    """Test the LedgerConfig dataclass itself."""

    def test_defaults(self):
        config = LedgerConfig()
        assert config.max_claim_amount == Decimal("5000")
        assert config.settlement_delay == timedelta(seconds=3)
        assert config.seed_sample_data is False

    @pytest.mark.parametrize("kwargs", [
        {"max_claim_amount": Decimal("0")},
        {"max_claim_amount": Decimal("-1")},
        {"max_claim_amount": Decimal("Infinity")},
        {"max_claim_amount": 5000},
        {"settlement_delay": timedelta(seconds=-1)},
        {"poll_interval": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            LedgerConfig(**kwargs)


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "ledger.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            if isinstance(config_data, str):
                f.write(config_data)
            else:
                yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        path = self._write_config({
            "max_claim_amount": 2500,
            "settlement_delay_seconds": 10,
            "poll_interval_seconds": 0.5,
            "seed_sample_data": True,
        })
        config = load_config(path)
        assert config.max_claim_amount == Decimal("2500")
        assert config.settlement_delay == timedelta(seconds=10)
        assert config.poll_interval == 0.5
        assert config.seed_sample_data is True

    def test_decimal_string_ceiling(self):
        path = self._write_config({"max_claim_amount": "1234.56"})
        assert load_config(path).max_claim_amount == Decimal("1234.56")

    def test_empty_file_gives_defaults(self):
        path = self._write_config("")
        assert load_config(path) == LedgerConfig()

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_config(os.path.join(self.temp_dir, "nope.yaml"))

    def test_invalid_yaml(self):
        path = self._write_config("max_claim_amount: [unclosed")
        with pytest.raises(yaml.YAMLError):
            load_config(path)

    def test_non_mapping_rejected(self):
        path = self._write_config("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_unknown_keys_rejected(self):
        path = self._write_config({"max_claim_amount": 10, "currency": "EUR"})
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_config(path)

    @pytest.mark.parametrize("raw", [
        {"max_claim_amount": "lots"},
        {"max_claim_amount": True},
        {"max_claim_amount": -5},
        {"settlement_delay_seconds": "3"},
        {"settlement_delay_seconds": -1},
        {"poll_interval_seconds": 0},
        {"seed_sample_data": "yes"},
    ])
    def test_invalid_values_rejected(self, raw):
        with pytest.raises(ValueError):
            config_from_dict(raw)
