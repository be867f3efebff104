"""Shared helpers: exception types and logger setup."""
