"""Configuration for tiny11-builder."""

from tiny11_builder.config.settings import BuildConfig


__all__ = ["BuildConfig"]
