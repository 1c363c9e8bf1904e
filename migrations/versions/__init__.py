"""Supported migration steps, one module per from -> to transition."""
