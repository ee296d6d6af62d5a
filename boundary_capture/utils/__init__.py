"""Shared helpers and export writers."""
