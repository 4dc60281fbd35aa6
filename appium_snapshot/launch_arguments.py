import re
from pathlib import Path
from typing import List, Optional

from .logger import trace


LANGUAGE_FILE = "language.txt"
LOCALE_FILE = "locale.txt"
LAUNCH_ARGUMENTS_FILE = "snapshot-launch_arguments.txt"

SNAPSHOT_FLAGS = ["-FASTLANE_SNAPSHOT", "YES", "-ui_testing"]

# 큰따옴표로 묶인 구간(따옴표 포함) 또는 공백이 아닌 문자열의 최대 연속
_TOKEN_PATTERN = re.compile(r'(".+?"|\S+)')


def tokenize_launch_arguments(text: str) -> List[str]:
    """실행 인자 문자열을 토큰 목록으로 분리합니다.

    따옴표 안의 이스케이프는 해석하지 않습니다. 닫히지 않은 따옴표는
    공백 단위 토큰의 일부로 남습니다.
    """
    return _TOKEN_PATTERN.findall(text)


def read_trimmed(path: Path) -> Optional[str]:
    """UTF-8 텍스트 파일을 읽고 앞뒤 공백을 제거합니다. 실패하면 None."""
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        trace(f"{path} 파일을 읽을 수 없습니다: {e}")
        return None


def derive_locale(language: str) -> str:
    """언어 태그로부터 기본 로케일 식별자를 만듭니다."""
    return language.strip()


def load_language(cache_dir: Path, current: str = "") -> str:
    language = read_trimmed(cache_dir / LANGUAGE_FILE)
    if language is None:
        trace("Couldn't detect/set language...")
        return current
    return language


def load_locale(cache_dir: Path, language: str, current: str = "") -> str:
    locale = read_trimmed(cache_dir / LOCALE_FILE)
    if locale is None:
        trace("Couldn't detect/set locale...")
        locale = current

    if not locale and language:
        locale = derive_locale(language)

    return locale


def language_arguments(language: str) -> List[str]:
    if not language:
        return []
    return ["-AppleLanguages", f"({language})"]


def locale_arguments(locale: str) -> List[str]:
    if not locale:
        return []
    return ["-AppleLocale", f'"{locale}"']


def load_launch_arguments(cache_dir: Path) -> List[str]:
    """스냅샷 플래그와 snapshot-launch_arguments.txt의 토큰을 반환합니다."""
    arguments = list(SNAPSHOT_FLAGS)

    path = cache_dir / LAUNCH_ARGUMENTS_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        trace(f"Couldn't detect/set launch_arguments... ({e})")
        return arguments

    arguments.extend(tokenize_launch_arguments(text))
    return arguments
