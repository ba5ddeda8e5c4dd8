"""creg: a deterministic registry of content ownership claims."""

__version__ = "0.1.0"
