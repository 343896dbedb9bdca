"""Pre-flight feasibility checks for relayed meta-transactions."""

__version__ = "2.0.1"
