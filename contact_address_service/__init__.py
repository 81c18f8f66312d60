"""Contact Address Service - addresses nested under user-owned contacts."""

__version__ = "0.1.0"
