"""Domain definitions (resource layouts and id rules)."""
