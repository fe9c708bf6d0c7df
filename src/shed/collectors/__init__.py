"""Per-domain inventory collectors."""
