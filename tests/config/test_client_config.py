"""
Tests for the client configuration layer.

Covers:
- Packaged defaults
- Override files and the base URL environment variable
- Structural validation (every problem reported)
- deep_merge and checksum determinism
- FUELOPS_CONFIG_TRACE audit log
"""

from dataclasses import fields

import pytest
import yaml

from fuelops_config import BASE_URL_ENV, DEFAULTS_PATH, get_active_config
from fuelops_config.loader import (
    build_config,
    compute_checksum,
    deep_merge,
    load_yaml_file,
    validate_document,
)
from fuelops_engines.validation import ProductPair, ValidationRules
from fuelops_kernel.domain.entry import Product
from fuelops_kernel.exceptions import ConfigValidationError


def _defaults() -> dict:
    return load_yaml_file(DEFAULTS_PATH)


class TestDefaults:
    def test_packaged_defaults(self):
        config = get_active_config(environ={})

        assert config.source == "defaults"
        assert config.overrides == ()
        assert config.api.base_url == "http://localhost:8081/api"
        assert config.api.timeout_seconds == 15.0
        assert config.api.retry_attempts == 3
        assert config.api.mock_fallback is True
        assert config.refresh.entries_seconds == 300.0
        assert config.refresh.statistics_seconds == 600.0
        assert config.local_store.database_url == "sqlite://"

    def test_validation_rules(self):
        rules = get_active_config(environ={}).validation
        assert rules.max_stock_level == 70000.0
        assert rules.max_cash_variance == 100.0
        assert rules.product_pairs == (ProductPair(Product.DIESEL, Product.SUPER),)
        assert "bank_lodgement" in rules.mandatory_fields

    def test_reference_rates(self):
        config = get_active_config(environ={})
        assert config.reference_rate(Product.SUPER) == 15.85
        assert config.reference_rate(Product.KEROSENE) == 14.30

    def test_config_is_frozen(self):
        config = get_active_config(environ={})
        with pytest.raises(AttributeError):
            config.source = "elsewhere"


class TestOverrides:
    def test_override_file_merges(self, tmp_path):
        path = tmp_path / "site.yaml"
        path.write_text(
            yaml.safe_dump(
                {"api": {"retry_attempts": 5}, "reference_rates": {"Super": 16.1}}
            )
        )
        config = get_active_config(path, environ={})

        assert config.api.retry_attempts == 5
        # Untouched keys keep their defaults
        assert config.api.timeout_seconds == 15.0
        assert config.reference_rate(Product.SUPER) == 16.1
        assert config.reference_rate(Product.DIESEL) == 17.20
        assert config.source == str(path)
        assert config.overrides == ("file",)

    def test_env_base_url(self):
        config = get_active_config(environ={BASE_URL_ENV: "https://ops.example.com/api/"})
        assert config.api.base_url == "https://ops.example.com/api"
        assert config.overrides == (BASE_URL_ENV,)

    def test_empty_env_value_ignored(self):
        config = get_active_config(environ={BASE_URL_ENV: ""})
        assert config.overrides == ()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml", environ={})

    def test_invalid_override(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("api:\n  retry_attempts: 0\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            get_active_config(path, environ={})
        assert exc_info.value.errors == ["api.retry_attempts must be an integer >= 1"]

    def test_trace_logged(self, captured_logs):
        get_active_config(environ={BASE_URL_ENV: "http://backend.test/api"})

        traces = [r for r in captured_logs() if r["message"] == "FUELOPS_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["base_url"] == "http://backend.test/api"
        assert traces[0]["config_overrides"] == [BASE_URL_ENV]
        assert len(traces[0]["checksum"]) == 64


class TestValidateDocument:
    def test_defaults_are_valid(self):
        assert validate_document(_defaults()) == []

    def test_missing_sections(self):
        errors = validate_document({"api": {"base_url": "x"}})
        assert "missing section: refresh" in errors
        assert "missing section: local_store" in errors
        assert "missing section: api" not in errors

    def test_every_problem_reported(self):
        data = deep_merge(
            _defaults(),
            {
                "api": {"base_url": " ", "timeout_seconds": -1},
                "refresh": {"entries_seconds": 0},
                "validation": {
                    "mandatory_fields": ["date", "colour"],
                    "min_rate": 60,
                    "product_pairs": [{"designated": "Diesel"}, {"designated": "Petrol", "companion": "Super"}],
                },
                "reference_rates": {"Jet A1": 20.0, "Gas": 0},
            },
        )
        errors = validate_document(data)

        assert errors == [
            "api.base_url must be a non-empty string",
            "api.timeout_seconds must be a non-negative number",
            "refresh.entries_seconds must be a positive number",
            "validation.mandatory_fields: unknown field colour",
            "validation.min_rate must not exceed max_rate",
            "validation.product_pairs entry missing companion",
            "validation.product_pairs: Unknown product: Petrol",
            "reference_rates: Unknown product: Jet A1",
            "reference_rates.Gas must be a positive number",
        ]

    def test_unread_validation_setting_rejected(self):
        data = deep_merge(_defaults(), {"validation": {"max_variance_percentage": 5}})
        assert validate_document(data) == [
            "validation.max_variance_percentage: no rule reads this setting"
        ]

    def test_packaged_validation_settings_all_read(self):
        settings = set(_defaults()["validation"])
        assert settings <= {f.name for f in fields(ValidationRules)}

    def test_booleans_are_not_numbers(self):
        data = deep_merge(_defaults(), {"refresh": {"statistics_seconds": True}})
        assert validate_document(data) == ["refresh.statistics_seconds must be a positive number"]

    def test_legacy_product_codes_accepted(self):
        data = deep_merge(_defaults(), {"reference_rates": {"AGO": 17.5}})
        assert validate_document(data) == []


class TestBuildConfig:
    def test_raises_with_all_errors(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            build_config({}, source="test")
        assert len(exc_info.value.errors) == 5

    def test_custom_product_pairs(self):
        data = deep_merge(
            _defaults(),
            {"validation": {"product_pairs": [{"designated": "Kerosene", "companion": "Gas"}]}},
        )
        config = build_config(data, source="test")
        assert config.validation.product_pairs == (ProductPair(Product.KEROSENE, Product.GAS),)

    def test_empty_product_pairs(self):
        data = deep_merge(_defaults(), {"validation": {"product_pairs": []}})
        assert build_config(data, source="test").validation.product_pairs == ()


class TestMergeAndChecksum:
    def test_deep_merge_nested(self):
        base = {"a": {"b": 1, "c": 2}, "d": [1, 2]}
        merged = deep_merge(base, {"a": {"c": 3}, "d": [9]})
        assert merged == {"a": {"b": 1, "c": 3}, "d": [9]}
        # Inputs untouched
        assert base == {"a": {"b": 1, "c": 2}, "d": [1, 2]}

    def test_checksum_deterministic(self):
        assert compute_checksum({"x": 1, "y": 2}) == compute_checksum({"y": 2, "x": 1})

    def test_checksum_changes_with_content(self):
        assert compute_checksum({"x": 1}) != compute_checksum({"x": 2})

    def test_override_changes_checksum(self):
        default = get_active_config(environ={})
        custom = get_active_config(environ={BASE_URL_ENV: "http://other/api"})
        assert default.checksum != custom.checksum
