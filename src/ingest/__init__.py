"""Registry source ingestion.

This module acquires raw registry sources and decodes them row by row.
It prepares typed entity sets for the linker.
"""
