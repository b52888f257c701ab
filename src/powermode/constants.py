"""Fixed identifiers shared across powermode."""

from typing import Final

# Built-in Windows power scheme GUIDs
POWER_SAVER_PLAN: Final = "a1841308-3541-4fab-bc81-f71556f20b4a"
BALANCED_PLAN: Final = "381b4222-f694-41f0-9685-ff5bb260df2e"

# Services toggled off by both profiles and re-enabled on restore
BLUETOOTH_SERVICES: Final[tuple[str, ...]] = (
    "bthserv",
    "BTAGService",
    "BthAvctpSvc",
    "BluetoothUserService",
)

# Services backing the UltraSaver suppressions
SEARCH_INDEXING_SERVICE: Final = "WSearch"
PREFETCH_SERVICE: Final = "SysMain"
DIAGNOSTICS_SERVICE: Final = "DiagTrack"

# Services captured in every snapshot
TRACKED_SERVICES: Final[tuple[str, ...]] = (
    *BLUETOOTH_SERVICES,
    SEARCH_INDEXING_SERVICE,
    PREFETCH_SERVICE,
    DIAGNOSTICS_SERVICE,
)

DEFAULT_BRIGHTNESS: Final = 75

# State files kept under the configured state directory
MODE_FILE_NAME: Final = "mode.txt"
SNAPSHOT_FILE_NAME: Final = "original_settings.json"
LOCK_FILE_NAME: Final = "powermode.lock"
LOG_FILE_NAME: Final = "powermode.log"

DEFAULT_REVERT_TASK_NAME: Final = "PowerModeDeferredRevert"
