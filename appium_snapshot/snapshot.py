import re
import time
from pathlib import Path
from typing import Mapping, Optional

from .config import IDLE_TIMEOUT, SnapshotConfig, SnapshotConfigBuilder
from .elements import find_loading_indicators, first_window_width
from .launch_arguments import (
    language_arguments,
    load_language,
    load_launch_arguments,
    load_locale,
    locale_arguments,
)
from .logger import error, trace
from .paths import SnapshotError, resolve_cache_directory
from .platforms import Platform
from .png import is_png
from .robot import AutomationApp


# fastlane 이 설정 파일 버전을 확인할 때 사용하는 값
SNAPSHOT_HELPER_VERSION = "1.21"

NOT_CONFIGURED_MESSAGE = "App is not set. Please call setup_snapshot(app) before snapshot()."
CACHE_DIRECTORY_NOT_SET_MESSAGE = "CacheDirectory is not set - probably running on a physical device?"

SECONDARY_FN_KEY = "XCUIKeyboardKeySecondaryFn"

# 병렬 UI 테스트에서 시뮬레이터 이름 앞에 붙는 접두사
_CLONE_PATTERN = re.compile(r"Clone [0-9]+ of ")


def sanitize_simulator_name(name: str) -> str:
    """시뮬레이터 이름에서 "Clone N of " 접두사를 제거합니다."""
    return _CLONE_PATTERN.sub("", name)


def setup_snapshot(
    app: AutomationApp,
    wait_for_animations: bool = True,
    environment: Optional[Mapping[str, str]] = None,
    platform: Optional[Platform] = None,
) -> SnapshotConfig:
    """앱의 실행 인자를 준비하고 이후 캡처에 사용할 설정을 반환합니다."""
    builder = SnapshotConfigBuilder().app(app).wait_for_animations(wait_for_animations)
    if environment is not None:
        builder.environment(environment)
    if platform is not None:
        builder.platform(platform)

    try:
        config = builder.build()
    except ValueError as e:
        # 플랫폼을 알 수 없으면 캐시 디렉터리 없이 반환합니다
        error(str(e))
        return builder.platform(Platform.DEVICE).build()

    return prepare(config)


def prepare(config: SnapshotConfig) -> SnapshotConfig:
    """빌더로 만든 설정에 캐시 디렉터리, 언어, 로케일, 실행 인자를 채웁니다.

    경로 결정에 실패하면 오류를 기록하고 캐시 디렉터리 없이 설정을 반환합니다.
    이 경우 이후의 모든 캡처는 로그만 남기고 아무 것도 하지 않습니다.
    """
    if config.app is None:
        error(NOT_CONFIGURED_MESSAGE)
        return config

    try:
        config.cache_directory = resolve_cache_directory(
            config.environment, config.platform, config.users_root
        )
    except SnapshotError as e:
        error(str(e))
        return config

    set_language(config)
    set_locale(config)
    set_launch_arguments(config)
    return config


def set_language(config: SnapshotConfig) -> None:
    if config.cache_directory is None:
        trace(CACHE_DIRECTORY_NOT_SET_MESSAGE)
        return

    config.device_language = load_language(config.cache_directory, config.device_language)
    config.app.launch_arguments.extend(language_arguments(config.device_language))


def set_locale(config: SnapshotConfig) -> None:
    if config.cache_directory is None:
        trace(CACHE_DIRECTORY_NOT_SET_MESSAGE)
        return

    config.locale = load_locale(config.cache_directory, config.device_language, config.locale)
    config.app.launch_arguments.extend(locale_arguments(config.locale))


def set_launch_arguments(config: SnapshotConfig) -> None:
    if config.cache_directory is None:
        trace(CACHE_DIRECTORY_NOT_SET_MESSAGE)
        return

    config.app.launch_arguments.extend(load_launch_arguments(config.cache_directory))


def snapshot(
    config: Optional[SnapshotConfig],
    name: str,
    time_waiting_for_idle: float = IDLE_TIMEOUT,
) -> Optional[Path]:
    """스크린샷을 캡처합니다.

    Args:
        config: setup_snapshot 이 반환한 설정. None 이면 로그만 남깁니다.
        name: 스냅샷 이름
        time_waiting_for_idle: 네트워크 로딩 인디케이터가 사라질 때까지 기다릴 시간(초).
            0 이면 기다리지 않습니다.

    Returns:
        저장된 파일 경로. 저장하지 않았으면 None. 실패해도 예외를 발생시키지 않습니다.
    """
    if time_waiting_for_idle > 0:
        wait_for_loading_indicator_to_disappear(config, time_waiting_for_idle)

    trace(f"snapshot: {name}")

    if config is not None and config.wait_for_animations:
        # 애니메이션이 끝날 때까지 대기 (대략)
        time.sleep(config.animation_delay)

    if config is None or config.app is None:
        error(NOT_CONFIGURED_MESSAGE)
        return None

    if config.platform == Platform.DESKTOP:
        # macOS 에서는 fastlane 이 키 입력을 감지해 직접 캡처합니다
        try:
            config.app.type_key(SECONDARY_FN_KEY)
        except Exception as e:
            error(f"snapshot 키 입력을 보낼 수 없습니다: {name}: {e}")
        return None

    return _capture_screenshot(config, name)


def snapshot_waiting(
    config: Optional[SnapshotConfig], name: str, wait_for_loading_indicator: bool
) -> Optional[Path]:
    if wait_for_loading_indicator:
        return snapshot(config, name)
    return snapshot(config, name, time_waiting_for_idle=0)


def _capture_screenshot(config: SnapshotConfig, name: str) -> Optional[Path]:
    try:
        screenshot = config.app.get_screenshot()
    except Exception as e:
        error(f"스크린샷을 캡처할 수 없습니다: {name}: {e}")
        return None

    simulator = config.environment.get("SIMULATOR_DEVICE_NAME")
    screenshots_dir = config.screenshots_directory
    if simulator is None:
        error(f"SIMULATOR_DEVICE_NAME 이 설정되지 않아 스크린샷을 저장할 수 없습니다: {name}")
        return None
    if screenshots_dir is None:
        error(CACHE_DIRECTORY_NOT_SET_MESSAGE)
        return None

    simulator = sanitize_simulator_name(simulator)
    path = screenshots_dir / f"{simulator}-{name}.png"

    if not is_png(screenshot):
        error(f"Problem writing screenshot: {name} to {path}")
        error("캡처된 데이터가 PNG 이미지가 아닙니다")
        return None

    try:
        screenshots_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(screenshot)
    except OSError as e:
        error(f"Problem writing screenshot: {name} to {path}")
        error(str(e))
        return None

    return path


def _loading_indicator_exists(app: AutomationApp) -> bool:
    try:
        root = app.get_elements_on_screen()
    except Exception as e:
        # 조회에 실패하면 아직 사라지지 않은 것으로 간주합니다
        trace(f"UI 트리를 가져올 수 없습니다: {e}")
        return True

    return bool(find_loading_indicators(root, first_window_width(root)))


def wait_for_loading_indicator_to_disappear(
    config: Optional[SnapshotConfig], timeout: float
) -> bool:
    """네트워크 로딩 인디케이터가 사라질 때까지 최대 timeout 초 동안 기다립니다.

    사라졌으면 True, 시간 초과 시 False 를 반환합니다. 시간 초과는 오류가 아닙니다.
    """
    if config is not None and config.is_tv:
        return True

    if config is None or config.app is None:
        error(NOT_CONFIGURED_MESSAGE)
        return False

    deadline = time.monotonic() + timeout
    while True:
        if not _loading_indicator_exists(config.app):
            return True

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            trace(f"로딩 인디케이터가 {timeout}초 안에 사라지지 않았습니다")
            return False

        time.sleep(min(config.poll_interval, remaining))
