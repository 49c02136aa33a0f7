"""TripSplit: offline-first shared trip expenses with debt settlement."""

__version__ = "0.1.0"
