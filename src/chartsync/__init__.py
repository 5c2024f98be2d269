"""chartsync: entity discovery and chart synchronization for metric collectors."""

__version__ = "0.1.0"
