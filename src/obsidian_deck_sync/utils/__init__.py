"""Shared utilities: logging, file I/O, preflight checks."""
