"""Refresh orchestration.

This module runs acquire, decode, link, and publish cycles and schedules
them. It also reports snapshot freshness for health checks.
"""
