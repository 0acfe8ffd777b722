"""Source URI parsing helpers.

This module classifies source locations and parses S3 URIs so that
acquisition and configuration validate locations the same way.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import RegistryAcquisitionError, RegistryConfigError

SCHEME_LOCAL = "local"
SCHEME_HTTP = "http"
SCHEME_S3 = "s3"


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    key: str


def source_scheme(uri: str) -> str:
    """Return the acquisition scheme of a source URI.

    Args:
        uri: Local path, ``http(s)://`` URL, or ``s3://`` URI.

    Returns:
        One of ``local``, ``http``, ``s3``.
    """
    lowered = uri.lower()
    if lowered.startswith(("http://", "https://")):
        return SCHEME_HTTP
    if lowered.startswith("s3://"):
        return SCHEME_S3
    return SCHEME_LOCAL


def parse_s3_uri(uri: str, domain: str) -> S3Location:
    """Parse and validate an S3 object URI.

    Args:
        uri: URI in format ``s3://bucket/key``.
        domain: Error domain string ("acquisition" or "config").

    Returns:
        Parsed bucket and key pair.

    Raises:
        RegistryAcquisitionError: For acquisition-domain parse failures.
        RegistryConfigError: For config-domain parse failures.
    """
    stripped_uri = uri.removeprefix("s3://")
    if "/" not in stripped_uri:
        _raise_uri_error(uri, domain)
    bucket, key = stripped_uri.split("/", 1)
    if not bucket or not key:
        _raise_uri_error(uri, domain)
    return S3Location(bucket=bucket, key=key)


def _raise_uri_error(uri: str, domain: str) -> None:
    message = (
        f"Invalid S3 URI '{uri}': expected s3://bucket/key. "
        "Provide both bucket and object key."
    )
    if domain == "config":
        raise RegistryConfigError(message)
    raise RegistryAcquisitionError(message)
