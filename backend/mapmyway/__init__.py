"""MapMyWay: road trip planning backend."""

__version__ = "0.1.0"
