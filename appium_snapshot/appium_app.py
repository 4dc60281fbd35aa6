from threading import Lock
from typing import Any, Dict, List, Optional, Sequence

from appium import webdriver
from appium.options.ios import XCUITestOptions
from appium.options.mac import Mac2Options

from .config import APPIUM_SERVER_URL
from .elements import parse_page_source
from .logger import trace
from .robot import ActionableError, ScreenElement


# XCUIKeyModifierFlags
MODIFIER_FLAGS = {
    "shift": 1 << 1,
    "control": 1 << 2,
    "option": 1 << 3,
    "command": 1 << 4,
    "fn": 1 << 5,
}


class AppiumApplication:
    """Appium 세션으로 제어하는 스냅샷 대상 앱

    launch() 전에 launch_arguments 를 채우면 processArguments 로 전달됩니다.
    """

    def __init__(
        self,
        bundle_id: str,
        platform_name: str = "iOS",
        capabilities: Optional[Dict[str, Any]] = None,
        server_url: str = APPIUM_SERVER_URL,
    ):
        self.bundle_id = bundle_id
        self.platform_name = platform_name
        self.capabilities = dict(capabilities or {})
        self.server_url = server_url
        self.launch_arguments: List[str] = []
        self.driver = None
        self._lock = Lock()

    def _options(self):
        capabilities = dict(self.capabilities)
        capabilities["platformName"] = self.platform_name

        if self.platform_name.lower() == "mac":
            capabilities.setdefault("appium:automationName", "Mac2")
            capabilities["appium:bundleId"] = self.bundle_id
            capabilities["appium:arguments"] = list(self.launch_arguments)
            return Mac2Options().load_capabilities(capabilities)

        capabilities.setdefault("appium:automationName", "XCUITest")
        capabilities["appium:bundleId"] = self.bundle_id
        capabilities["appium:processArguments"] = {"args": list(self.launch_arguments)}
        return XCUITestOptions().load_capabilities(capabilities)

    def launch(self) -> None:
        """현재 실행 인자로 앱을 실행합니다. 기존 세션은 종료합니다."""
        options = self._options()
        trace(f"앱 실행: {self.bundle_id} {' '.join(self.launch_arguments)}")
        with self._lock:
            if self.driver:
                self.driver.quit()
            self.driver = webdriver.Remote(self.server_url, options=options)

    def terminate(self) -> None:
        with self._lock:
            if self.driver:
                self.driver.quit()
                self.driver = None

    def _require_driver(self):
        if self.driver is None:
            raise ActionableError(
                f"{self.bundle_id} 앱이 실행되지 않았습니다. launch() 를 먼저 호출하세요."
            )
        return self.driver

    def get_screenshot(self) -> bytes:
        driver = self._require_driver()
        with self._lock:
            return driver.get_screenshot_as_png()

    def get_elements_on_screen(self) -> ScreenElement:
        driver = self._require_driver()
        with self._lock:
            source = driver.page_source
        return parse_page_source(source)

    def type_key(self, key: str, modifiers: Sequence[str] = ()) -> None:
        driver = self._require_driver()
        # macOS modifierFlags 는 비트 마스크입니다
        flags = 0
        for modifier in modifiers:
            flags |= MODIFIER_FLAGS.get(modifier, 0)
        with self._lock:
            driver.execute_script("macos: keys", {"keys": [{"key": key, "modifierFlags": flags}]})

