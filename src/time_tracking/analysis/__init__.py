"""Summaries of tracked time."""
