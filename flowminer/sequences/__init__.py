"""Shared sequence primitives used by the miner and the template matcher.

Provides the observed-event value type, domain context segmentation,
sliding-window scanning, and the ratio/confidence arithmetic both
components are built on.
"""
