"""Parallel Downloader - concurrent file downloads with log-friendly progress."""

__version__ = "0.1.0"
