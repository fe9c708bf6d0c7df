"""shed - developer disk usage inventory and cross-reference."""

__version__ = "0.1.0"
