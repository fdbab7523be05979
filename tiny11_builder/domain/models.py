"""Value types passed between build stages and tool wrappers.

None of these parse container, hive or ISO formats; they describe what the
external tools report or are asked to do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


# ==============================================================================
# Image Container Domain
# ==============================================================================


@dataclass(frozen=True)
class WimImage:
    """One image index inside a container, as listed by wimlib-imagex info."""

    index: int
    name: str = ""
    description: str = ""
    edition: Optional[str] = None
    architecture: Optional[str] = None

    def format_label(self) -> str:
        """Format a one-line label for the image listing.

        Returns: e.g., "[2] Windows 11 Pro" or "[2] Windows 11 Pro (x86_64)"
        """
        label = f"[{self.index}] {self.name or 'Unnamed image'}"
        if self.architecture:
            label += f" ({self.architecture})"
        return label


@dataclass(frozen=True)
class WimInfo:
    """Summary of a container: image count plus per-index details."""

    image_count: int
    images: tuple[WimImage, ...] = field(default_factory=tuple)

    def contains(self, index: int) -> bool:
        return 1 <= index <= self.image_count


# ==============================================================================
# Registry Domain
# ==============================================================================


@dataclass(frozen=True)
class RegistryEdit:
    """A DWORD value set under a key of an offline hive."""

    key: str  # e.g., r"\Setup\LabConfig"
    name: str  # e.g., "BypassTPMCheck"
    value: int = 1


# ==============================================================================
# ISO Authoring Domain
# ==============================================================================


@dataclass(frozen=True)
class BootSpec:
    """Dual El Torito boot catalog layout, paths relative to the ISO root."""

    bios_loader: str
    efi_loader: str
    boot_load_size: int = 8

    @property
    def required_files(self) -> tuple[str, str]:
        return (self.bios_loader, self.efi_loader)


@dataclass(frozen=True)
class IsoMetadata:
    volume_id: str
    application_id: str
    publisher: str
    preparer: str
