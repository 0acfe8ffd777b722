"""Medicine registry CLI entry points.
This module exposes commands for refreshing and querying the registry.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, replace
from typing import Any, Sequence

from core.config import RegistryConfig
from core.constants import HEALTH_STATUS_UNHEALTHY, REFRESH_STATUS_SUCCEEDED
from core.errors import RegistryError
from core.types import RefreshOutcome
from store.registry_sdk import RegistryClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="medregistry", description="Medicine registry CLI")
    parser.add_argument("--source-root", help="Override REGISTRY_SOURCE_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_refresh_command(subparsers)
    _add_specialty_command(subparsers)
    _add_group_command(subparsers)
    _add_presentation_command(subparsers)
    _add_health_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the registry CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.source_root)
    except RegistryError as error:
        print(f"config_error={error}")
        return 1
    outcome = client.refresh()
    if args.command == "refresh":
        return _run_refresh_command(outcome)
    if args.command == "health":
        return _run_health_command(client)
    if outcome.status != REFRESH_STATUS_SUCCEEDED:
        print(f"refresh_error={outcome.error}")
        return 1
    if args.command == "specialty":
        return _print_found(client.specialty(args.cis), f"specialty {args.cis}")
    if args.command == "group":
        return _print_found(client.group(args.group_id), f"group {args.group_id}")
    if args.command == "presentation":
        return _print_found(client.presentation(args.cip), f"presentation {args.cip}")
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(source_root: str | None) -> RegistryClient:
    """Build SDK client with optional source-root override.

    Args:
        source_root: Optional override location.

    Returns:
        Configured SDK client.
    """
    config = RegistryConfig.from_env()
    if source_root:
        config = replace(config, source_root=source_root)
    return RegistryClient(config)


def _run_refresh_command(outcome: RefreshOutcome) -> int:
    """Print a refresh outcome summary.

    Args:
        outcome: Outcome of the cycle.

    Returns:
        Exit code.
    """
    print(f"status={outcome.status}")
    print(f"snapshot_version={outcome.snapshot_version or '-'}")
    if outcome.status != REFRESH_STATUS_SUCCEEDED or outcome.report is None:
        print(f"failed_source={outcome.failed_source or '-'}")
        print(f"error={outcome.error}")
        return 1
    report = outcome.report
    print(f"specialty_count={report.specialty_count}")
    print(f"group_count={report.group_count}")
    for source_name, count in report.record_counts.items():
        print(
            f"{source_name}\t"
            f"records={count}\t"
            f"rejects={report.reject_counts[source_name]}\t"
            f"orphans={report.orphan_counts[source_name]}"
        )
    print(f"duration_seconds={report.duration_seconds:.3f}")
    return 0


def _run_health_command(client: RegistryClient) -> int:
    """Print the health assessment as JSON, exiting 1 when unhealthy."""
    status = client.health()
    print(json.dumps(status.to_dict(), indent=2, sort_keys=True))
    return 1 if status.status == HEALTH_STATUS_UNHEALTHY else 0


def _print_found(found: Any, description: str) -> int:
    """Print one looked-up record as JSON.

    Args:
        found: Dataclass record or ``None``.
        description: Human-readable lookup name for the miss message.

    Returns:
        Exit code, 1 when nothing was found.
    """
    if found is None:
        print(f"not_found={description}")
        return 1
    print(json.dumps(asdict(found), indent=2, ensure_ascii=False))
    return 0


def _add_refresh_command(subparsers: Any) -> None:
    """Register refresh subcommand."""
    subparsers.add_parser("refresh", help="Run one refresh cycle and print its report")


def _add_specialty_command(subparsers: Any) -> None:
    """Register specialty subcommand."""
    parser = subparsers.add_parser("specialty", help="Print one composite specialty")
    parser.add_argument("cis", type=int, help="Specialty identifier (CIS)")


def _add_group_command(subparsers: Any) -> None:
    """Register group subcommand."""
    parser = subparsers.add_parser("group", help="Print one generic group with its members")
    parser.add_argument("group_id", type=int, help="Generic group identifier")


def _add_presentation_command(subparsers: Any) -> None:
    """Register presentation subcommand."""
    parser = subparsers.add_parser("presentation", help="Print one presentation by CIP code")
    parser.add_argument("cip", type=int, help="CIP7 or CIP13 code")


def _add_health_command(subparsers: Any) -> None:
    """Register health subcommand."""
    subparsers.add_parser("health", help="Print data freshness and counts")
