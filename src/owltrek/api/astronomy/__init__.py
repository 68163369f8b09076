"""Astronomy subpackage: moon and sun calculations."""
