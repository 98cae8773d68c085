"""Debouncing of raw classifications into note events."""
