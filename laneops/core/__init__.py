"""Core application primitives (settings, auth context, errors)."""
