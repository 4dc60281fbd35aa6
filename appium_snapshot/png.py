from dataclasses import dataclass
import struct


PNG_SIGNATURE = bytes([137, 80, 78, 71, 13, 10, 26, 10])


@dataclass
class PngDimensions:
    """PNG 이미지의 크기 정보"""
    width: int
    height: int


def is_png(buffer: bytes) -> bool:
    """PNG 시그니처와 IHDR 헤더가 있는지 확인합니다."""
    return len(buffer) >= 24 and buffer[:8] == PNG_SIGNATURE


class PNG:
    """캡처된 스크린샷의 PNG 헤더를 읽습니다."""

    def __init__(self, buffer: bytes):
        self.buffer = buffer

    def get_dimensions(self) -> PngDimensions:
        """PNG 이미지의 너비와 높이를 반환합니다."""
        if not is_png(self.buffer):
            raise ValueError("유효한 PNG 파일이 아닙니다")

        # IHDR 청크: 16번째 바이트부터 너비, 20번째 바이트부터 높이 (big-endian)
        width, height = struct.unpack('>II', self.buffer[16:24])

        return PngDimensions(width=width, height=height)
