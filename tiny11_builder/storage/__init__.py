"""Wrappers around the external imaging, registry, mount and ISO tools."""
