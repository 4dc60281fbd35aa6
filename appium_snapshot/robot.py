from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence


@dataclass
class ElementRect:
    x: float
    y: float
    width: float
    height: float


@dataclass
class ScreenElement:
    type: str
    rect: ElementRect
    identifier: str = ""
    label: Optional[str] = None
    name: Optional[str] = None
    children: List["ScreenElement"] = field(default_factory=list)


class ActionableError(Exception):
    """사용자가 조치 가능한 오류"""
    pass


class AutomationApp(Protocol):
    """스냅샷 대상 앱을 제어하기 위한 공통 인터페이스"""

    launch_arguments: List[str]

    def get_screenshot(self) -> bytes:
        """현재 화면의 스크린샷을 PNG bytes로 가져옵니다."""
        ...

    def get_elements_on_screen(self) -> ScreenElement:
        """현재 UI 트리의 루트 요소를 가져옵니다."""
        ...

    def type_key(self, key: str, modifiers: Sequence[str] = ()) -> None:
        """키 입력을 전송합니다. macOS 앱에서만 사용됩니다."""
        ...
