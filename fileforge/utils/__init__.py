"""Shared utilities: logging, errors, and file helpers."""
