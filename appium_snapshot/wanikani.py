import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from .logger import error, trace


WANIKANI_API_URL = "https://api.wanikani.com/v2"
WANIKANI_REVISION = "20170710"


class WaniKaniAPIError(Exception):
    """WaniKani API 요청 실패"""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(f"WaniKani API 오류 ({status}): {message}")


class User(BaseModel):
    id: str
    username: str
    level: int
    profile_url: Optional[str] = None


class Subject(BaseModel):
    id: int
    object: str
    level: int = 0
    slug: str = ""
    characters: Optional[str] = None
    meanings: List[str] = Field(default_factory=list)
    data_updated_at: Optional[str] = None

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> 'Subject':
        data = resource.get("data", {})
        return cls(
            id=resource["id"],
            object=resource.get("object", ""),
            level=data.get("level", 0),
            slug=data.get("slug", ""),
            characters=data.get("characters"),
            meanings=[m["meaning"] for m in data.get("meanings", [])],
            data_updated_at=resource.get("data_updated_at"),
        )


class WaniKaniAPIClient:
    """WaniKani v2 API 클라이언트"""

    def __init__(
        self,
        api_token: str,
        base_url: str = WANIKANI_API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_token}",
            "Wanikani-Revision": WANIKANI_REVISION,
        })

    def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        if not url.startswith("http"):
            url = f"{self.base_url}/{url.lstrip('/')}"

        response = self.session.get(url, params=params, timeout=self.timeout)
        if response.status_code >= 400:
            try:
                message = response.json().get("error", response.reason)
            except ValueError:
                message = response.reason
            raise WaniKaniAPIError(response.status_code, message)

        return response.json()

    def user(self) -> User:
        data = self._get("user")["data"]
        return User.model_validate(data)

    def subjects(self, updated_after: Optional[str] = None) -> List[Subject]:
        """모든 페이지를 따라가며 과목 목록을 가져옵니다."""
        params = {"updated_after": updated_after} if updated_after else None
        url: Optional[str] = "subjects"
        subjects: List[Subject] = []

        while url:
            page = self._get(url, params)
            subjects.extend(Subject.from_resource(r) for r in page.get("data", []))
            url = (page.get("pages") or {}).get("next_url")
            # next_url 에 쿼리가 포함되어 있습니다
            params = None

        trace(f"WaniKani 과목 {len(subjects)}개를 가져왔습니다")
        return subjects


class LocalCachingClient:
    """API 응답을 로컬 JSON 파일에 캐시하는 클라이언트"""

    CACHE_FILE = "subjects.json"

    def __init__(self, client: WaniKaniAPIClient, cache_dir: Path):
        self.client = client
        self.cache_dir = Path(cache_dir)
        self._subjects: Dict[int, Subject] = {}
        self.last_sync: Optional[str] = None
        self._load()

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / self.CACHE_FILE

    def _load(self) -> None:
        if not self.cache_file.is_file():
            return

        try:
            data = json.loads(self.cache_file.read_text(encoding="utf-8"))
            subjects = {
                int(key): Subject.model_validate(value)
                for key, value in data.get("subjects", {}).items()
            }
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            error(f"캐시 파일을 읽을 수 없습니다 ({self.cache_file}): {e}")
            return

        self.last_sync = data.get("last_sync")
        self._subjects = subjects

    def _save(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        data = {
            "last_sync": self.last_sync,
            "subjects": {str(k): v.model_dump() for k, v in self._subjects.items()},
        }
        self.cache_file.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def sync(self) -> int:
        """마지막 동기화 이후 변경된 과목을 받아 캐시에 합칩니다."""
        started_at = datetime.now(timezone.utc).isoformat()
        updated = self.client.subjects(updated_after=self.last_sync)

        for subject in updated:
            self._subjects[subject.id] = subject

        self.last_sync = started_at
        self._save()
        return len(updated)

    def get_subject(self, subject_id: int) -> Optional[Subject]:
        return self._subjects.get(subject_id)

    def subject_count(self) -> int:
        return len(self._subjects)
