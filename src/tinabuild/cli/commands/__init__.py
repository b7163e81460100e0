"""Top-level tinabuild commands (auto-discovered)."""
