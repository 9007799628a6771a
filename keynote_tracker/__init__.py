"""Announcement aggregation: fetch, normalize, merge and cache feeds."""

__version__ = "0.1.0"
