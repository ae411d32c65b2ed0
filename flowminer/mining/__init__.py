"""Sequence mining for FlowMiner.

Segments a user's recent events into context runs, counts bounded-length
``kind:domain`` subsequences across runs, and upserts the frequent ones
as patterns.
"""
