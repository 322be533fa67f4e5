"""Temporal workflows for background jobs (market reports, maintenance)."""
