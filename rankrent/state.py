from __future__ import annotations

import json
from pathlib import Path
from typing import Any

TOKEN_KEY = "token"
USER_KEY = "user"
CURRENT_AREA_KEY = "currentArea"
CALL_LOGS_KEY = "callLogs"
LAST_CALLED_INDEX_PREFIX = "lastCalledIndex_"


def last_called_index_key(area_id: str) -> str:
    return f"{LAST_CALLED_INDEX_PREFIX}{area_id}"


class LocalStorage:
    """String key/value store persisted as a single JSON object.

    Stands in for browser local storage: values are always strings, every
    write rewrites the whole file, and an unreadable file reads as empty.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = str(value)
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear(self) -> None:
        self._write({})

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))


def auth_token(storage: LocalStorage) -> str | None:
    return storage.get_item(TOKEN_KEY) or None


def current_user_id(storage: LocalStorage) -> Any:
    user = storage.get_json(USER_KEY)
    if not isinstance(user, dict):
        return None
    return user.get("id")
