"""State layer.

This package holds the observable thing: the single, lock-guarded model of
the meter that the sync loop writes and the server layer reads.
"""
