"""Record consumers.

This package aggregates run statistics and writes the combined
normalized archive from the canonical record stream.
"""
