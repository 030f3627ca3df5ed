"""Client submissions."""
