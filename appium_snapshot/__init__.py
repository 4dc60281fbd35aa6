__version__ = "0.1.0"

from .config import SnapshotConfig, SnapshotConfigBuilder
from .paths import SnapshotError, resolve_cache_directory
from .platforms import Platform, detect_platform
from .snapshot import (
    SNAPSHOT_HELPER_VERSION,
    prepare,
    setup_snapshot,
    snapshot,
    snapshot_waiting,
    wait_for_loading_indicator_to_disappear,
)
