"""Injection engine: owned regions, ownership scan, per-target strategies."""
