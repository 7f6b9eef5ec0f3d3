"""Shared utilities for stackfolio."""
