"""SEMS Monitor — smart meter dashboard and customer notifications."""

__version__ = "1.0.0"
