"""Runtime configuration model for the registry.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Mapping

from core.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_REJECT_RATIO,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_SOURCE_ROOT,
    SOURCE_FILE_NAMES,
    SOURCE_NAMES,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import RegistryConfigError
from core.source_uri import SCHEME_S3, parse_s3_uri, source_scheme

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class RegistryConfig:
    """Validated runtime configuration.

    Attributes:
        source_root: Local directory, ``http(s)://`` base URL, or ``s3://`` prefix.
        source_overrides: Explicit per-source URIs taking precedence over the root.
        fetch_timeout_seconds: Bound on source acquisition.
        refresh_interval_seconds: Delay between scheduled refresh cycles.
        max_reject_ratio: Rejected row share above which a source is garbled.
        validate_group_trailer: Whether the trailing group id must match.
        s3_region: Optional default AWS region for S3 sources.
        s3_profile: Optional AWS profile for boto3 session initialization.
        log_level: Minimum structured log level.
    """

    source_root: str = DEFAULT_SOURCE_ROOT
    source_overrides: Mapping[str, str] = field(default_factory=dict)
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    max_reject_ratio: float = DEFAULT_MAX_REJECT_RATIO
    validate_group_trailer: bool = True
    s3_region: str | None = None
    s3_profile: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "RegistryConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RegistryConfigError: If environment values are invalid.
        """
        sources_file = os.getenv("REGISTRY_SOURCES_FILE")
        overrides = _load_source_overrides(Path(sources_file)) if sources_file else {}
        return cls(
            source_root=os.getenv("REGISTRY_SOURCE_ROOT", DEFAULT_SOURCE_ROOT),
            source_overrides=overrides,
            fetch_timeout_seconds=_parse_positive_float(
                "REGISTRY_FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS
            ),
            refresh_interval_seconds=_parse_positive_float(
                "REGISTRY_REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS
            ),
            max_reject_ratio=_parse_ratio("REGISTRY_MAX_REJECT_RATIO", DEFAULT_MAX_REJECT_RATIO),
            validate_group_trailer=_parse_bool("REGISTRY_VALIDATE_GROUP_TRAILER", True),
            s3_region=os.getenv("REGISTRY_S3_REGION"),
            s3_profile=os.getenv("REGISTRY_S3_PROFILE"),
            log_level=_parse_log_level(os.getenv("REGISTRY_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )

    def source_uri(self, source_name: str) -> str:
        """Resolve the URI of one named source.

        Args:
            source_name: One of the registry source names.

        Returns:
            Override URI when configured, else ``<source_root>/<file name>``.
        """
        override = self.source_overrides.get(source_name)
        if override:
            return override
        return f"{self.source_root.rstrip('/')}/{SOURCE_FILE_NAMES[source_name]}"


def _load_source_overrides(sources_file: Path) -> dict[str, str]:
    """Read per-source URI overrides from a YAML mapping file.

    Args:
        sources_file: YAML file path.

    Returns:
        Mapping of source name to URI.

    Raises:
        RegistryConfigError: If the file is missing or not a valid mapping.
    """
    import yaml

    if not sources_file.is_file():
        raise RegistryConfigError(
            f"Invalid REGISTRY_SOURCES_FILE value: {sources_file} does not exist. "
            "Point it at a YAML mapping of source names to URIs."
        )
    try:
        payload = yaml.safe_load(sources_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as error:
        raise RegistryConfigError(
            f"Failed to parse sources file {sources_file}: {error}. Fix the YAML syntax."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise RegistryConfigError(
            f"Invalid sources file {sources_file}: expected a mapping at top level."
        )
    overrides: dict[str, str] = {}
    for name, uri in payload.items():
        if name not in SOURCE_NAMES:
            raise RegistryConfigError(
                f"Invalid sources file {sources_file}: unknown source '{name}'. "
                f"Expected one of {SOURCE_NAMES}."
            )
        if not isinstance(uri, str) or not uri.strip():
            raise RegistryConfigError(
                f"Invalid sources file {sources_file}: source '{name}' must map to a URI string."
            )
        if source_scheme(uri.strip()) == SCHEME_S3:
            parse_s3_uri(uri.strip(), domain="config")
        overrides[name] = uri.strip()
    return overrides


def _parse_positive_float(env_name: str, default: float) -> float:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default
    try:
        value = float(raw_value)
    except ValueError as error:
        raise RegistryConfigError(
            f"Invalid {env_name} value: expected number, got '{raw_value}'. "
            f"Set {env_name} to a positive number of seconds."
        ) from error
    if value <= 0:
        raise RegistryConfigError(
            f"Invalid {env_name} value: expected positive number, got '{raw_value}'."
        )
    return value


def _parse_ratio(env_name: str, default: float) -> float:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default
    try:
        value = float(raw_value)
    except ValueError as error:
        raise RegistryConfigError(
            f"Invalid {env_name} value: expected number in [0, 1], got '{raw_value}'."
        ) from error
    if not 0.0 <= value <= 1.0:
        raise RegistryConfigError(
            f"Invalid {env_name} value: expected number in [0, 1], got '{raw_value}'."
        )
    return value


def _parse_bool(env_name: str, default: bool) -> bool:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise RegistryConfigError(
        f"Invalid {env_name} value: expected true/false, got '{raw_value}'."
    )


def _parse_log_level(raw_value: str) -> str:
    """Validate the configured log level name.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Lower-cased level name.

    Raises:
        RegistryConfigError: If the level is not supported.
    """
    level = raw_value.strip().lower()
    if level not in SUPPORTED_LOG_LEVELS:
        raise RegistryConfigError(
            f"Invalid REGISTRY_LOG_LEVEL value: got '{raw_value}'. "
            f"Use one of {SUPPORTED_LOG_LEVELS}."
        )
    return level
