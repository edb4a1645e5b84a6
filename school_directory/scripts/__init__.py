"""Operational scripts for the school directory."""
