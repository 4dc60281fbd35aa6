import platform as _platform
from enum import Enum
from typing import Mapping, Optional


class Platform(Enum):
    """스냅샷이 실행되는 대상 플랫폼"""
    DESKTOP = "desktop"
    SIMULATOR = "simulator"
    DEVICE = "device"


SIMULATOR_ENV_KEYS = ("SIMULATOR_HOST_HOME", "SIMULATOR_DEVICE_NAME")


def detect_platform(env: Mapping[str, str], system: Optional[str] = None) -> Platform:
    """환경 변수와 호스트 OS로부터 대상 플랫폼을 결정합니다.

    SNAPSHOT_PLATFORM 이 지정되어 있으면 그 값을 우선합니다.
    """
    if explicit := env.get("SNAPSHOT_PLATFORM"):
        try:
            return Platform(explicit.strip().lower())
        except ValueError:
            raise ValueError(
                f"지원하지 않는 SNAPSHOT_PLATFORM 값입니다: {explicit} "
                "(desktop, simulator, device 중 하나)"
            )

    if any(key in env for key in SIMULATOR_ENV_KEYS):
        return Platform.SIMULATOR

    if (system or _platform.system()) == "Darwin":
        return Platform.DESKTOP

    return Platform.DEVICE
