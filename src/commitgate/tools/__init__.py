"""Wrappers around the optional external tools the gate delegates to."""
