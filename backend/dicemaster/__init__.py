"""DiceMaster: two-dice wager settlement engine driven by an external randomness oracle."""

__version__ = "0.1.0"
__author__ = "DiceMaster Team"

__all__ = ["__version__", "__author__"]
