"""Observation subpackage: night analysis and planning."""
