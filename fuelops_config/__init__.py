"""
fuelops_config -- single public entrypoint for client configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.  Returns a frozen
    ``ClientConfig``.

Architecture position:
    Configuration -- YAML-driven.  Sits above ``fuelops_kernel`` and
    ``fuelops_engines`` and below ``fuelops_services``.  The kernel and the
    engines MUST NEVER import from ``fuelops_config``; services receive the
    parts they need (rules, rates, retry policy) as constructor arguments.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - The packaged ``defaults.yaml`` is always the base document; an
      override file is deep-merged over it, then the environment.
    - Validation runs on the merged document before anything is parsed.

Failure modes:
    - ``FileNotFoundError`` -- override path does not exist.
    - ``yaml.YAMLError`` -- override file is not valid YAML.
    - ``ConfigValidationError`` -- structural validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``FUELOPS_CONFIG_TRACE`` log entry with the source, checksum, base URL
    and applied overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from fuelops_config.loader import build_config, deep_merge, load_yaml_file
from fuelops_config.schema import (
    ApiSettings,
    ClientConfig,
    LocalStoreSettings,
    RefreshSettings,
)
from fuelops_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

# Environment variable that overrides api.base_url.
BASE_URL_ENV = "FUELOPS_API_BASE_URL"


def get_active_config(
    path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Optional YAML file deep-merged over the packaged defaults.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        ClientConfig -- frozen, validated.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ConfigValidationError: If the merged configuration is invalid.
    """
    env = os.environ if environ is None else environ
    data = load_yaml_file(DEFAULTS_PATH)
    overrides: list[str] = []
    source = "defaults"

    if path is not None:
        data = deep_merge(data, load_yaml_file(Path(path)))
        source = str(path)
        overrides.append("file")

    base_url = env.get(BASE_URL_ENV)
    if base_url:
        data = deep_merge(data, {"api": {"base_url": base_url}})
        overrides.append(BASE_URL_ENV)

    config = build_config(data, source=source, overrides=tuple(overrides))

    _logger.info(
        "FUELOPS_CONFIG_TRACE",
        extra={
            "trace_type": "FUELOPS_CONFIG_TRACE",
            "config_source": config.source,
            "checksum": config.checksum,
            "base_url": config.api.base_url,
            "mock_fallback": config.api.mock_fallback,
            "config_overrides": list(config.overrides),
        },
    )
    return config


__all__ = [
    "get_active_config",
    "ClientConfig",
    "ApiSettings",
    "RefreshSettings",
    "LocalStoreSettings",
    "BASE_URL_ENV",
]
