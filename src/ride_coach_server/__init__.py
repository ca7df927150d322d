"""Training analytics server for cycling coaching."""

__version__ = "0.1.0"
