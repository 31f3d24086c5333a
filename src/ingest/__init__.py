"""Snapshot ingestion pipeline.

This package detects snapshot formats, reads archives lazily, and
extracts canonical records for the stats and output consumers.
"""
