"""Snapshot storage layer.

This module holds immutable registry snapshots published by refresh
cycles and exposes lookups for the serving layer and the SDK.
"""
