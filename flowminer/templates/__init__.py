"""Workflow template matching for FlowMiner.

Matches a user's recent activity against a catalog of hand-authored
workflow templates with fuzzy, position-aligned window scanning, and
relaxes thresholds for accounts with little history.
"""
