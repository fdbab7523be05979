"""Build a trimmed Windows 11 installation ISO from a stock image."""

from tiny11_builder.__version__ import __version__


__all__ = ["__version__"]
