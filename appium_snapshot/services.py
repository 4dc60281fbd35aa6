import shutil
import weakref
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set, TYPE_CHECKING

import requests

from .logger import error, trace

if TYPE_CHECKING:
    from .wanikani import LocalCachingClient, WaniKaniAPIClient


INTERNET_CHECK_URL = "https://www.apple.com/library/test/success.html"
FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")
AUDIO_EXTENSION = ".mp3"


class Reachability:
    """네트워크 연결 상태 확인"""

    def __init__(self, url: str = INTERNET_CHECK_URL, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    @classmethod
    def for_internet_connection(cls) -> 'Reachability':
        return cls()

    def is_reachable(self) -> bool:
        try:
            response = requests.head(self.url, timeout=self.timeout, allow_redirects=True)
            return response.status_code < 500
        except requests.RequestException as e:
            trace(f"네트워크에 연결할 수 없습니다: {e}")
            return False


class FontLoader:
    """폰트 파일 목록 관리"""

    def __init__(self):
        self._fonts: Set[str] = set()

    def load(self, directory: Path) -> List[str]:
        """디렉터리의 폰트 파일을 등록하고 새로 등록된 이름을 반환합니다."""
        directory = Path(directory)
        if not directory.is_dir():
            trace(f"폰트 디렉터리가 없습니다: {directory}")
            return []

        loaded = []
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() in FONT_EXTENSIONS and path.stem not in self._fonts:
                self._fonts.add(path.stem)
                loaded.append(path.stem)
        return loaded

    @property
    def loaded_fonts(self) -> List[str]:
        return sorted(self._fonts)

    def is_loaded(self, name: str) -> bool:
        return name in self._fonts


class _ServiceBound:
    """ServiceRegistry 를 약한 참조로 들고 있는 서비스의 공통 부분"""

    def __init__(self, services: 'ServiceRegistry'):
        self._services = weakref.ref(services)

    @property
    def services(self) -> 'ServiceRegistry':
        services = self._services()
        if services is None:
            raise ReferenceError("ServiceRegistry 가 이미 해제되었습니다")
        return services


class OfflineAudio(_ServiceBound):
    """다운로드된 발음 오디오 파일"""

    def __init__(self, services: 'ServiceRegistry', directory: Path):
        super().__init__(services)
        self.directory = Path(directory)

    def file_for(self, subject_id: int) -> Path:
        return self.directory / f"{subject_id}{AUDIO_EXTENSION}"

    def is_available(self, subject_id: int) -> bool:
        return self.file_for(subject_id).is_file()

    def available_subject_ids(self) -> List[int]:
        if not self.directory.is_dir():
            return []
        return sorted(
            int(path.stem)
            for path in self.directory.glob(f"*{AUDIO_EXTENSION}")
            if path.stem.isdigit()
        )

    def save(self, subject_id: int, data: bytes) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.file_for(subject_id)
        path.write_bytes(data)
        return path

    def delete_all(self) -> None:
        shutil.rmtree(self.directory, ignore_errors=True)


class Audio(_ServiceBound):
    """발음 오디오 재생. 오프라인 파일을 우선하고, 없으면 네트워크를 사용합니다."""

    def __init__(
        self,
        services: 'ServiceRegistry',
        player: Optional[Callable[[str], None]] = None,
    ):
        super().__init__(services)
        self.player = player or (lambda source: trace(f"오디오 재생: {source}"))

    def play(self, subject_id: int, urls: Sequence[str] = ()) -> Optional[str]:
        """재생할 소스를 고르고 재생합니다. 재생할 수 없으면 None."""
        services = self.services

        if services.offline_audio.is_available(subject_id):
            source = str(services.offline_audio.file_for(subject_id))
        elif urls and services.reachability.is_reachable():
            source = urls[0]
        else:
            error(f"{subject_id} 오디오를 재생할 수 없습니다: 오프라인 파일과 네트워크 연결이 없습니다")
            return None

        self.player(source)
        return source


class ServiceRegistry:
    """앱 시작 시 한 번 만들어져 각 서비스에 주입되는 서비스 모음"""

    def __init__(
        self,
        reachability: Optional[Reachability] = None,
        font_loader: Optional[FontLoader] = None,
        offline_audio_dir: Optional[Path] = None,
    ):
        self.reachability = reachability or Reachability.for_internet_connection()
        self.font_loader = font_loader or FontLoader()

        audio_dir = offline_audio_dir or Path.home() / "Library" / "Caches" / "offline-audio"
        self._offline_audio = OfflineAudio(self, audio_dir)
        self._audio = Audio(self)

        self.client: Optional['WaniKaniAPIClient'] = None
        self.local_caching_client: Optional['LocalCachingClient'] = None

    @property
    def offline_audio(self) -> OfflineAudio:
        return self._offline_audio

    @property
    def audio(self) -> Audio:
        return self._audio
