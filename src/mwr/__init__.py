"""Maintenance window resolution for tenant workloads."""

__version__ = "0.1.0"
