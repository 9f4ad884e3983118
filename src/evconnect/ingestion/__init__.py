"""Ingestion layer.

Pure transforms from raw Fleet API documents to normalized vehicle state,
plus the synthetic demo vehicle used when live data is unavailable.
"""

__all__: list[str] = []
