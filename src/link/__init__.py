"""Registry reconciliation layer.

This module links loaded sources into an immutable composite graph.
It also reports data quality issues found in the linked graph.
"""
