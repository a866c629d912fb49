"""Configuration, errors and pure helpers."""
