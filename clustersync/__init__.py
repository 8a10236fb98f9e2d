"""Cluster metadata synchronisation: resource handlers, queue events and metrics."""

__version__ = "0.1.0"