import xml.etree.ElementTree as ET
from typing import Iterator, List

from .robot import ElementRect, ScreenElement


STATUS_BAR_TYPE = "XCUIElementTypeStatusBar"
OTHER_TYPE = "XCUIElementTypeOther"
WINDOW_TYPE = "XCUIElementTypeWindow"

# 위치 추적 표시는 로딩 인디케이터와 크기가 같습니다
ALLOWED_IDENTIFIERS = ("GeofenceLocationTrackingOn", "StandardLocationTrackingOn")

OLD_LOADING_INDICATOR_SIZE = (10.0, 20.0)
OLD_STATUS_BAR_HEIGHT = 20.0
NEW_STATUS_BAR_HEIGHT = 44.0


def _is_between(value: float, low: float, high: float) -> bool:
    return low <= value <= high


def has_allowed_identifier(element: ScreenElement) -> bool:
    return element.identifier in ALLOWED_IDENTIFIERS


def is_network_loading_indicator(element: ScreenElement) -> bool:
    """요소가 상태 표시줄의 네트워크 로딩 인디케이터인지 판단합니다."""
    if has_allowed_identifier(element):
        return False

    size = (element.rect.width, element.rect.height)
    has_old_size = size == OLD_LOADING_INDICATOR_SIZE
    has_new_size = (
        _is_between(element.rect.width, 46, 47)
        and _is_between(element.rect.height, 2, 3)
    )

    return has_old_size or has_new_size


def is_status_bar(element: ScreenElement, device_width: float) -> bool:
    """요소가 디바이스 상태 표시줄인지 판단합니다."""
    if element.type == STATUS_BAR_TYPE:
        return True

    if (element.rect.x, element.rect.y) != (0, 0):
        return False

    size = (element.rect.width, element.rect.height)
    return size in (
        (device_width, OLD_STATUS_BAR_HEIGHT),
        (device_width, NEW_STATUS_BAR_HEIGHT),
    )


def iter_elements(root: ScreenElement) -> Iterator[ScreenElement]:
    """트리를 깊이 우선(전위) 순서로 순회합니다."""
    stack = [root]
    while stack:
        element = stack.pop()
        yield element
        stack.extend(reversed(element.children))


def _descendants(element: ScreenElement) -> Iterator[ScreenElement]:
    for child in element.children:
        yield from iter_elements(child)


def find_loading_indicators(root: ScreenElement, device_width: float) -> List[ScreenElement]:
    """상태 표시줄을 포함하는 Other 요소 안의 로딩 인디케이터를 찾습니다."""
    found: List[ScreenElement] = []
    seen = set()

    for element in iter_elements(root):
        if element.type != OTHER_TYPE:
            continue
        descendants = list(_descendants(element))
        if not any(is_status_bar(d, device_width) for d in descendants):
            continue
        for descendant in descendants:
            if id(descendant) in seen or not is_network_loading_indicator(descendant):
                continue
            seen.add(id(descendant))
            found.append(descendant)

    return found


def _float_attr(node: ET.Element, name: str) -> float:
    try:
        return float(node.get(name, 0))
    except ValueError:
        return 0.0


def _parse_node(node: ET.Element) -> ScreenElement:
    name = node.get("name")
    return ScreenElement(
        type=node.get("type", node.tag),
        rect=ElementRect(
            x=_float_attr(node, "x"),
            y=_float_attr(node, "y"),
            width=_float_attr(node, "width"),
            height=_float_attr(node, "height"),
        ),
        identifier=name or "",
        label=node.get("label"),
        name=name,
        children=[_parse_node(child) for child in node],
    )


def parse_page_source(xml_str: str) -> ScreenElement:
    """XCUITest 페이지 소스 XML을 요소 트리로 변환합니다."""
    try:
        root = ET.fromstring(xml_str)
    except ET.ParseError as e:
        raise ValueError(f"페이지 소스를 파싱할 수 없습니다: {e}")

    return _parse_node(root)


def first_window_width(root: ScreenElement) -> float:
    """트리에서 첫 번째 윈도우의 너비를 반환합니다. 없으면 루트 너비."""
    for element in iter_elements(root):
        if element.type == WINDOW_TYPE:
            return element.rect.width
    return root.rect.width
