"""Version information for cgeruntime."""

__version__ = "0.1.0"
