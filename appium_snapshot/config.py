import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .platforms import Platform, detect_platform
from .robot import AutomationApp


APPIUM_HOST = os.environ.get("APPIUM_HOST", "localhost")
APPIUM_PORT = int(os.environ.get("APPIUM_PORT", "4723"))
APPIUM_SERVER_URL = f"http://{APPIUM_HOST}:{APPIUM_PORT}"

IDLE_TIMEOUT = float(os.environ.get("SNAPSHOT_IDLE_TIMEOUT", "20"))
ANIMATION_DELAY = float(os.environ.get("SNAPSHOT_ANIMATION_DELAY", "1"))
POLL_INTERVAL = float(os.environ.get("SNAPSHOT_POLL_INTERVAL", "0.5"))


@dataclass
class SnapshotConfig:
    """setup_snapshot 으로 채워지고 이후 모든 캡처 호출이 읽는 설정"""

    app: Optional[AutomationApp]
    platform: Platform
    environment: Mapping[str, str] = field(default_factory=dict)
    wait_for_animations: bool = True
    is_tv: bool = False
    cache_directory: Optional[Path] = None
    users_root: Optional[Path] = None
    device_language: str = ""
    locale: str = ""
    animation_delay: float = ANIMATION_DELAY
    poll_interval: float = POLL_INTERVAL

    @property
    def screenshots_directory(self) -> Optional[Path]:
        if self.cache_directory is None:
            return None
        return self.cache_directory / "screenshots"

    @property
    def is_configured(self) -> bool:
        return self.app is not None


class SnapshotConfigBuilder:
    """SnapshotConfig 를 만들기 위한 빌더 클래스"""

    def __init__(self):
        self._app: Optional[AutomationApp] = None
        self._environment: Optional[Mapping[str, str]] = None
        self._platform: Optional[Platform] = None
        self._wait_for_animations = True
        self._is_tv = False
        self._users_root: Optional[Path] = None
        self._animation_delay = ANIMATION_DELAY
        self._poll_interval = POLL_INTERVAL

    def app(self, app: AutomationApp) -> 'SnapshotConfigBuilder':
        self._app = app
        return self

    def environment(self, environment: Mapping[str, str]) -> 'SnapshotConfigBuilder':
        self._environment = environment
        return self

    def platform(self, platform: Platform) -> 'SnapshotConfigBuilder':
        self._platform = platform
        return self

    def wait_for_animations(self, wait: bool) -> 'SnapshotConfigBuilder':
        self._wait_for_animations = wait
        return self

    def tv(self, is_tv: bool = True) -> 'SnapshotConfigBuilder':
        self._is_tv = is_tv
        return self

    def users_root(self, path: Path) -> 'SnapshotConfigBuilder':
        self._users_root = Path(path)
        return self

    def animation_delay(self, seconds: float) -> 'SnapshotConfigBuilder':
        self._animation_delay = seconds
        return self

    def poll_interval(self, seconds: float) -> 'SnapshotConfigBuilder':
        self._poll_interval = seconds
        return self

    def build(self) -> SnapshotConfig:
        """설정을 조립합니다. 파일 시스템에는 접근하지 않습니다."""
        environment = dict(os.environ if self._environment is None else self._environment)
        platform = self._platform or detect_platform(environment)

        return SnapshotConfig(
            app=self._app,
            platform=platform,
            environment=environment,
            wait_for_animations=self._wait_for_animations,
            is_tv=self._is_tv,
            users_root=self._users_root,
            animation_delay=self._animation_delay,
            poll_interval=self._poll_interval,
        )
