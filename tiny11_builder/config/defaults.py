"""Fixed values baked into every build.

Use these constants instead of hardcoding values elsewhere.
"""

from __future__ import annotations

from tiny11_builder.domain.models import BootSpec, IsoMetadata, RegistryEdit


# Package -> executable checked on PATH before falling back to pacman.
REQUIRED_TOOLS: dict[str, str] = {
    "wimlib": "wimlib-imagex",
    "chntpw": "chntpw",
    "xorriso": "xorriso",
    "rsync": "rsync",
}

# Preinstalled apps removed from Program Files/WindowsApps. Matched as a
# case-insensitive substring of each entry name.
BLOATWARE_PACKAGES: tuple[str, ...] = (
    "Microsoft.BingNews",
    "Microsoft.BingWeather",
    "Clipchamp.Clipchamp",
    "Microsoft.GamingApp",
    "Microsoft.GetHelp",
    "Microsoft.Getstarted",
    "Microsoft.MicrosoftOfficeHub",
    "Microsoft.MicrosoftSolitaireCollection",
    "Microsoft.People",
    "Microsoft.Windows.Photos",
    "Microsoft.WindowsAlarms",
    "Microsoft.WindowsCamera",
    "Microsoft.windowscommunicationsapps",
    "Microsoft.WindowsFeedbackHub",
    "Microsoft.WindowsMaps",
    "Microsoft.WindowsSoundRecorder",
    "Microsoft.Xbox",
    "Microsoft.ZuneMusic",
    "Microsoft.ZuneVideo",
    "Microsoft.YourPhone",
    "Microsoft.Copilot",
)

# Paths relative to a mounted image root.
APP_STORE_DIR = "Program Files/WindowsApps"
EDGE_PARENT_DIR = "Program Files (x86)/Microsoft"
EDGE_DIR_PREFIX = "Edge"
EDGE_WEBVIEW_DIR = "Windows/System32/Microsoft-Edge-Webview"
ONEDRIVE_SETUP = "Windows/System32/OneDriveSetup.exe"
SYSTEM_HIVE = "Windows/System32/config/SYSTEM"
SYSPREP_DIR = "Windows/System32/Sysprep"

TELEMETRY_TASK_DIRS: tuple[str, ...] = (
    "Windows/System32/Tasks/Microsoft/Windows/Customer Experience Improvement Program",
    "Windows/System32/Tasks/Microsoft/Windows/Application Experience",
)

# Setup\LabConfig flags that let setup skip the hardware checks.
BYPASS_KEY = r"\Setup\LabConfig"
BYPASS_FLAGS: tuple[str, ...] = (
    "BypassTPMCheck",
    "BypassSecureBootCheck",
    "BypassRAMCheck",
    "BypassStorageCheck",
    "BypassCPUCheck",
)
BYPASS_EDITS: tuple[RegistryEdit, ...] = tuple(
    RegistryEdit(key=BYPASS_KEY, name=flag, value=1) for flag in BYPASS_FLAGS
)

ANSWER_FILE_NAME = "autounattend.xml"
ANSWER_FILE_URL = (
    "https://raw.githubusercontent.com/ntdevlabs/tiny11builder/main/autounattend.xml"
)
DOWNLOAD_CONNECT_TIMEOUT = 10
DOWNLOAD_TIMEOUT = 30

EXPORT_COMPRESSION = "LZX:100"
BOOT_IMAGE_INDEX = 2

BOOT_SPEC = BootSpec(
    bios_loader="boot/etfsboot.com",
    efi_loader="efi/microsoft/boot/efisys.bin",
    boot_load_size=8,
)
ISO_METADATA = IsoMetadata(
    volume_id="TINY11",
    application_id="TINY11",
    publisher="TINY11",
    preparer="prepared by xorriso",
)

OUTPUT_ISO_NAME = "tiny11.iso"
SCRATCH_DIR_NAME = "tiny11_work"
REGISTRY_SCRIPT_NAME = "reg_mods.txt"
