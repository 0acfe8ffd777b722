"""Source acquisition for registry refresh cycles.

This module fetches the raw bytes of each registry source from local
paths, HTTP(S) URLs, or S3 objects, bounded by the configured timeout.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Callable, Mapping

import httpx

from core.config import RegistryConfig
from core.constants import DEFAULT_CONNECT_TIMEOUT_SECONDS, HTTP_USER_AGENT, SOURCE_NAMES
from core.errors import RegistryAcquisitionError, RegistryDependencyError
from core.logging_config import get_logger
from core.source_uri import SCHEME_HTTP, SCHEME_S3, parse_s3_uri, source_scheme

_LOGGER = get_logger(__name__)

SourceFetcher = Callable[[str, str], bytes]


def acquire_sources(
    config: RegistryConfig,
    fetcher: SourceFetcher | None = None,
) -> dict[str, bytes]:
    """Fetch all five registry sources concurrently.

    Args:
        config: Runtime configuration with source locations and timeout.
        fetcher: Optional ``(source_name, uri) -> bytes`` callable; defaults to
            :func:`read_source_bytes` bound to ``config``.

    Returns:
        Raw bytes keyed by source name.

    A fetch that outlives the timeout cannot be interrupted: its worker
    thread is abandoned and exits when the underlying read returns. HTTP
    and S3 reads carry their own timeouts, so only a stuck local or custom
    fetcher read can linger.

    Raises:
        RegistryAcquisitionError: If any source fails or the step times out.
    """
    fetch = fetcher or (lambda name, uri: read_source_bytes(name, uri, config))
    uris = {name: config.source_uri(name) for name in SOURCE_NAMES}
    executor = ThreadPoolExecutor(max_workers=len(uris), thread_name_prefix="registry-fetch")
    try:
        futures = {executor.submit(fetch, name, uri): name for name, uri in uris.items()}
        done, pending = wait(futures, timeout=config.fetch_timeout_seconds)
        if pending:
            names = sorted(futures[future] for future in pending)
            for future in pending:
                future.cancel()
            raise RegistryAcquisitionError(
                f"Timed out after {config.fetch_timeout_seconds}s acquiring sources {names}. "
                "The previous snapshot stays published.",
                source_name=names[0],
            )
        return _collect_results(futures, done)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def read_source_bytes(
    source_name: str,
    uri: str,
    config: RegistryConfig,
    http_transport: httpx.BaseTransport | None = None,
) -> bytes:
    """Read one source from a local path, HTTP(S) URL, or S3 object.

    Args:
        source_name: Registry source name, used in errors.
        uri: Source location.
        config: Runtime configuration for timeouts and S3 session defaults.
        http_transport: Optional httpx transport for HTTP sources.

    Returns:
        Raw source bytes.

    Raises:
        RegistryAcquisitionError: If the source cannot be read.
    """
    scheme = source_scheme(uri)
    if scheme == SCHEME_HTTP:
        content = _read_http_source(source_name, uri, config, http_transport)
    elif scheme == SCHEME_S3:
        content = _read_s3_source(source_name, uri, config)
    else:
        content = _read_local_source(source_name, Path(uri).expanduser())
    _LOGGER.info("source_acquired", source_name=source_name, uri=uri, byte_count=len(content))
    return content


def _collect_results(futures: Mapping[Any, str], done: set) -> dict[str, bytes]:
    """Gather fetched bytes, raising the first failure by source order."""
    results: dict[str, bytes] = {}
    errors: dict[str, BaseException] = {}
    for future in done:
        name = futures[future]
        error = future.exception()
        if error is None:
            results[name] = future.result()
        else:
            errors[name] = error
    for name in SOURCE_NAMES:
        if name not in errors:
            continue
        error = errors[name]
        if isinstance(error, RegistryAcquisitionError):
            raise error
        raise RegistryAcquisitionError(
            f"Failed to acquire source '{name}': {error}", source_name=name
        ) from error
    return results


def _read_local_source(source_name: str, source_path: Path) -> bytes:
    """Read one source file from the local file system.

    Raises:
        RegistryAcquisitionError: If the path is missing or unreadable.
    """
    if not source_path.is_file():
        raise RegistryAcquisitionError(
            f"Failed to read source '{source_name}' at {source_path}: file does not exist. "
            "Set REGISTRY_SOURCE_ROOT to a directory holding the registry files.",
            source_name=source_name,
        )
    try:
        return source_path.read_bytes()
    except OSError as error:
        raise RegistryAcquisitionError(
            f"Failed to read source '{source_name}' at {source_path}: {error}.",
            source_name=source_name,
        ) from error


def _read_http_source(
    source_name: str,
    url: str,
    config: RegistryConfig,
    transport: httpx.BaseTransport | None = None,
) -> bytes:
    """Download one source over HTTP(S).

    Args:
        source_name: Registry source name.
        url: Source URL.
        config: Runtime configuration with the fetch timeout.
        transport: Optional httpx transport, used by tests.

    Returns:
        Response body bytes.

    Raises:
        RegistryAcquisitionError: On timeout, transport error, or non-2xx status.
    """
    timeout = httpx.Timeout(
        config.fetch_timeout_seconds,
        connect=min(DEFAULT_CONNECT_TIMEOUT_SECONDS, config.fetch_timeout_seconds),
    )
    client_kwargs: dict[str, Any] = {
        "timeout": timeout,
        "follow_redirects": True,
        "headers": {"User-Agent": HTTP_USER_AGENT},
    }
    if transport is not None:
        client_kwargs["transport"] = transport
    try:
        with httpx.Client(**client_kwargs) as client:
            response = client.get(url)
            response.raise_for_status()
            return response.content
    except httpx.TimeoutException as error:
        raise RegistryAcquisitionError(
            f"Timed out downloading source '{source_name}' from {url}.",
            source_name=source_name,
        ) from error
    except httpx.HTTPStatusError as error:
        raise RegistryAcquisitionError(
            f"Failed to download source '{source_name}' from {url}: "
            f"HTTP {error.response.status_code}.",
            source_name=source_name,
        ) from error
    except httpx.HTTPError as error:
        raise RegistryAcquisitionError(
            f"Failed to download source '{source_name}' from {url}: {error}.",
            source_name=source_name,
        ) from error


def _read_s3_source(source_name: str, uri: str, config: RegistryConfig) -> bytes:
    """Download one source object from S3.

    Raises:
        RegistryAcquisitionError: If the object cannot be fetched.
    """
    location = parse_s3_uri(uri, domain="acquisition")
    s3_client = _create_s3_client(config)
    try:
        return s3_client.get_object(Bucket=location.bucket, Key=location.key)["Body"].read()
    except Exception as error:
        raise RegistryAcquisitionError(
            f"Failed to download source '{source_name}' from {uri}: {error}. "
            "Check AWS credentials and the object key.",
            source_name=source_name,
        ) from error


def _create_s3_client(config: RegistryConfig) -> Any:
    """Create a boto3 S3 client with bounded timeouts.

    Raises:
        RegistryDependencyError: If boto3 is missing.
    """
    try:
        import boto3
        from botocore.config import Config
    except ImportError as error:
        raise RegistryDependencyError(
            "S3 sources require boto3, but it is not installed. "
            "Install boto3 to read s3:// registry sources."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    client_config = Config(
        connect_timeout=min(DEFAULT_CONNECT_TIMEOUT_SECONDS, config.fetch_timeout_seconds),
        read_timeout=config.fetch_timeout_seconds,
    )
    return session.client("s3", config=client_config)
