"""Version information for tiny11-builder."""

__version__ = "1.0.0"
