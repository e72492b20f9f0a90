"""Core application primitives (settings)."""
