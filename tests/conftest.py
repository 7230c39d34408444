from pathlib import Path

import pytest

from rankrent.http import ApiClient, ApiError
from rankrent.state import LocalStorage


class FakeApiClient(ApiClient):
    """Records every call; answers GETs from `responses`, fails methods listed in `fail`."""

    def __init__(self, storage: LocalStorage, responses: dict | None = None, fail: set[str] | None = None):
        super().__init__(base_url="http://api.test", storage=storage, max_retries=1)
        self.responses = responses or {}
        self.fail = fail or set()
        self.calls: list[tuple[str, str, dict | None]] = []
        self.next_id = 100

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail:
            raise ApiError("API Error: 500 Internal Server Error", 500)

    def get_json(self, path):
        self.calls.append(("GET", path, None))
        self._maybe_fail("GET")
        return self.responses.get(path, {"data": []})

    def post_json(self, path, body):
        self.calls.append(("POST", path, body))
        self._maybe_fail("POST")
        self.next_id += 1
        return {**body, "id": self.next_id, "created_at": "2024-01-10T12:00:00Z", "updated_at": "2024-01-10T12:00:00Z"}

    def put_json(self, path, body):
        self.calls.append(("PUT", path, body))
        self._maybe_fail("PUT")
        return {"data": body}

    def delete(self, path):
        self.calls.append(("DELETE", path, None))
        self._maybe_fail("DELETE")


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(str(tmp_path / "local_storage.json"))
