"""Member cluster connectivity, health probing and topology discovery."""

__version__ = "0.1.0"
