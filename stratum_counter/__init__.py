"""Per-container TCP connection counts for a port (Stratum: 3333)."""

__version__ = "0.1.0"
