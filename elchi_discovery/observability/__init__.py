"""Logging and metrics for elchi-discovery."""
