"""Shared utilities for Sprig."""
