"""Ports, errors and application state shared across the package."""
