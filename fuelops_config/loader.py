"""
Configuration Loader (``fuelops_config.loader``).

Responsibility
--------------
Loads YAML files, merges an override document over the packaged
defaults, validates the result, and parses it into the frozen
``fuelops_config.schema`` dataclasses.  Runtime callers go through
``fuelops_config.get_active_config()``, not this module.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Validation collects every problem before raising, so one run reports
  all of them.
* ``compute_checksum`` is deterministic for identical merged documents.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structural problems  -> ``ConfigValidationError`` with every message.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from fuelops_config.schema import (
    ApiSettings,
    ClientConfig,
    LocalStoreSettings,
    RefreshSettings,
)
from fuelops_engines.validation import ProductPair, ValidationRules
from fuelops_kernel.domain.entry import WIRE_NAMES, Product
from fuelops_kernel.exceptions import ConfigValidationError, UnknownProductError

REQUIRED_SECTIONS = ("api", "refresh", "validation", "reference_rates", "local_store")
_RULE_SETTINGS = frozenset(f.name for f in fields(ValidationRules))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in; nested dicts merge, the
    rest is replaced."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_document(data: dict[str, Any]) -> list[str]:
    """Return every structural problem in a merged configuration document."""
    errors: list[str] = []
    for section in REQUIRED_SECTIONS:
        if not isinstance(data.get(section), dict):
            errors.append(f"missing section: {section}")
    if errors:
        return errors

    api = data["api"]
    if not isinstance(api.get("base_url"), str) or not api["base_url"].strip():
        errors.append("api.base_url must be a non-empty string")
    for key in ("timeout_seconds", "retry_delay_seconds"):
        if key in api and (not _is_number(api[key]) or api[key] < 0):
            errors.append(f"api.{key} must be a non-negative number")
    if "retry_attempts" in api and (
        not isinstance(api["retry_attempts"], int) or api["retry_attempts"] < 1
    ):
        errors.append("api.retry_attempts must be an integer >= 1")

    for key, value in data["refresh"].items():
        if not _is_number(value) or value <= 0:
            errors.append(f"refresh.{key} must be a positive number")

    validation = data["validation"]
    for key in validation:
        if key not in _RULE_SETTINGS:
            errors.append(f"validation.{key}: no rule reads this setting")
    for name in validation.get("mandatory_fields", ()):
        if name not in WIRE_NAMES:
            errors.append(f"validation.mandatory_fields: unknown field {name}")
    for low, high in (("min_stock_level", "max_stock_level"), ("min_rate", "max_rate")):
        lo, hi = validation.get(low), validation.get(high)
        if lo is not None and hi is not None:
            if not (_is_number(lo) and _is_number(hi)):
                errors.append(f"validation.{low}/{high} must be numbers")
            elif lo > hi:
                errors.append(f"validation.{low} must not exceed {high}")
    for pair in validation.get("product_pairs", ()):
        for role in ("designated", "companion"):
            try:
                Product.parse(pair[role])
            except (KeyError, TypeError):
                errors.append(f"validation.product_pairs entry missing {role}")
            except UnknownProductError as exc:
                errors.append(f"validation.product_pairs: {exc}")

    for name, rate in data["reference_rates"].items():
        try:
            Product.parse(name)
        except UnknownProductError as exc:
            errors.append(f"reference_rates: {exc}")
            continue
        if not _is_number(rate) or rate <= 0:
            errors.append(f"reference_rates.{name} must be a positive number")

    return errors


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_api(data: dict[str, Any]) -> ApiSettings:
    return ApiSettings(
        base_url=str(data["base_url"]).rstrip("/"),
        timeout_seconds=float(data.get("timeout_seconds", 15)),
        retry_attempts=int(data.get("retry_attempts", 3)),
        retry_delay_seconds=float(data.get("retry_delay_seconds", 1)),
        mock_fallback=bool(data.get("mock_fallback", True)),
    )


def parse_refresh(data: dict[str, Any]) -> RefreshSettings:
    return RefreshSettings(
        entries_seconds=float(data.get("entries_seconds", 300)),
        statistics_seconds=float(data.get("statistics_seconds", 600)),
        health_check_seconds=float(data.get("health_check_seconds", 120)),
    )


def parse_validation(data: dict[str, Any]) -> ValidationRules:
    defaults = ValidationRules()
    pairs = tuple(
        ProductPair(
            designated=Product.parse(p["designated"]),
            companion=Product.parse(p["companion"]),
        )
        for p in data.get("product_pairs", ())
    )
    return ValidationRules(
        mandatory_fields=tuple(data.get("mandatory_fields", defaults.mandatory_fields)),
        min_stock_level=float(data.get("min_stock_level", defaults.min_stock_level)),
        max_stock_level=float(data.get("max_stock_level", defaults.max_stock_level)),
        min_rate=float(data.get("min_rate", defaults.min_rate)),
        max_rate=float(data.get("max_rate", defaults.max_rate)),
        max_cash_variance=float(data.get("max_cash_variance", defaults.max_cash_variance)),
        product_pairs=pairs if "product_pairs" in data else defaults.product_pairs,
    )


def parse_reference_rates(data: dict[str, Any]) -> dict[Product, float]:
    return {Product.parse(name): float(rate) for name, rate in data.items()}


def parse_local_store(data: dict[str, Any]) -> LocalStoreSettings:
    return LocalStoreSettings(
        database_url=str(data.get("database_url", "sqlite://")),
        echo=bool(data.get("echo", False)),
    )


def build_config(
    data: dict[str, Any],
    *,
    source: str,
    overrides: tuple[str, ...] = (),
) -> ClientConfig:
    """Validate a merged document and parse it into a ``ClientConfig``.

    Raises:
        ConfigValidationError: with every problem found.
    """
    errors = validate_document(data)
    if errors:
        raise ConfigValidationError(errors)
    return ClientConfig(
        api=parse_api(data["api"]),
        refresh=parse_refresh(data["refresh"]),
        validation=parse_validation(data["validation"]),
        reference_rates=parse_reference_rates(data["reference_rates"]),
        local_store=parse_local_store(data["local_store"]),
        source=source,
        checksum=compute_checksum(data),
        overrides=overrides,
    )
