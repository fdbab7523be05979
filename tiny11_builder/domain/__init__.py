"""Domain models for image customization.

Type-safe value objects shared by the build stages and the wrappers around
the external imaging, registry and ISO tools.
"""

from __future__ import annotations

from .models import (
    BootSpec,
    IsoMetadata,
    RegistryEdit,
    WimImage,
    WimInfo,
)


__all__ = [
    "BootSpec",
    "IsoMetadata",
    "RegistryEdit",
    "WimImage",
    "WimInfo",
]
