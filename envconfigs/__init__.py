"""Environment configurations."""
