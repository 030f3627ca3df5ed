"""Per-project catalog: unit types, color schemes and upgrade options."""
