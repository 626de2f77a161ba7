"""Ingestion layer.

This package turns the decoder's reading stream into normalized readings
ready to be applied to the thing.
"""

__all__: list[str] = []
