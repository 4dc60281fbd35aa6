from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import unquote, urlsplit

from .platforms import Platform


CACHE_SUBPATH = "Library/Caches/tools.fastlane"


class SnapshotError(Exception):
    """스냅샷 설정 파일 위치를 결정할 수 없을 때 발생하는 오류"""
    pass


class UserNotDetected(SnapshotError):
    def __init__(self):
        super().__init__(
            "Couldn't find Snapshot configuration files - can't detect current user "
        )


class HomeDirectoryNotFound(SnapshotError):
    def __init__(self):
        super().__init__(
            "Couldn't find Snapshot configuration files - can't detect `Users` dir"
        )


class SimulatorHomeDirectoryNotFound(SnapshotError):
    def __init__(self):
        super().__init__(
            "Couldn't find simulator home location. "
            "Please, check SIMULATOR_HOST_HOME env variable."
        )


class SimulatorHomeDirectoryInaccessible(SnapshotError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            "Can't prepare environment. Simulator home location is inaccessible. "
            f"Does {path} exist?"
        )


class UnsupportedPhysicalDevice(SnapshotError):
    def __init__(self):
        super().__init__("Can't use Snapshot on a physical device.")


def _users_directory() -> Optional[Path]:
    """사용자 홈 디렉터리들의 루트(macOS의 /Users)를 찾습니다."""
    users = Path("/Users")
    if users.is_dir():
        return users

    try:
        parent = Path.home().parent
    except RuntimeError:
        return None
    return parent if parent.is_dir() else None


def _simulator_home(value: str) -> Path:
    if not value.strip() or "\x00" in value:
        raise SimulatorHomeDirectoryInaccessible(value)

    try:
        parts = urlsplit(value)
    except ValueError:
        raise SimulatorHomeDirectoryInaccessible(value)

    if parts.scheme not in ("", "file") or not parts.path:
        raise SimulatorHomeDirectoryInaccessible(value)

    # file URL 의 퍼센트 인코딩을 해제합니다
    return Path(unquote(parts.path))


def resolve_cache_directory(
    env: Mapping[str, str],
    platform: Platform,
    users_root: Optional[Path] = None,
) -> Path:
    """fastlane 설정 파일과 스크린샷이 저장되는 캐시 디렉터리를 반환합니다.

    macOS에서는 /Users/<username>/Library 아래에,
    시뮬레이터에서는 SIMULATOR_HOST_HOME 아래에 위치합니다.
    물리 디바이스에서는 항상 실패합니다.
    """
    if platform == Platform.DESKTOP:
        user = env.get("USER")
        if not user:
            raise UserNotDetected()

        root = users_root if users_root is not None else _users_directory()
        if root is None:
            raise HomeDirectoryNotFound()

        home_dir = Path(root) / user

    elif platform == Platform.SIMULATOR:
        simulator_host_home = env.get("SIMULATOR_HOST_HOME")
        if simulator_host_home is None:
            raise SimulatorHomeDirectoryNotFound()

        home_dir = _simulator_home(simulator_host_home)

    else:
        raise UnsupportedPhysicalDevice()

    return home_dir / CACHE_SUBPATH
