"""Shared infrastructure: configuration, exceptions and utilities."""
