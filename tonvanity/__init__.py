"""TON wallet vanity address finder."""

__version__ = "1.0.0"
