"""Service factories."""
