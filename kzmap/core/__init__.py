"""Core utilities shared across kzmap (logging configuration)."""
