import json
import time
from pathlib import Path
from typing import Dict, Optional

from data.errors import StoreError


DEFAULT_TRAINING_LEVELS = {"g2_attention": 1, "g4_nback": 1}


class ProfileStore:
    """
    Профили участников в одном JSON-файле:
    {"users": {user_id: {"group": "G4", "training_levels": {"g4_nback": 2, ...}}}}

    Ядро только читает текущий уровень и записывает новый при повышении.
    """

    def __init__(self, path: str = "data/profiles.json") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._save({"users": {}})

    def create_user(self, user_id: str, group: str) -> Dict:
        data = self._load()
        users = data.setdefault("users", {})
        if user_id in users:
            raise StoreError(f"user already exists: {user_id}")
        users[user_id] = {
            "group": group,
            "created_at": int(time.time()),
            "training_levels": dict(DEFAULT_TRAINING_LEVELS),
        }
        self._save(data)
        return users[user_id]

    def get_user(self, user_id: str) -> Optional[Dict]:
        user = self._load().get("users", {}).get(user_id)
        return user if isinstance(user, dict) else None

    def count_group(self, group: str) -> int:
        users = self._load().get("users", {})
        return sum(1 for u in users.values() if isinstance(u, dict) and u.get("group") == group)

    def get_level(self, user_id: str, task_key: str, default: int = 1) -> int:
        user = self.get_user(user_id) or {}
        levels = user.get("training_levels", {})
        if not isinstance(levels, dict):
            return default
        try:
            return int(levels.get(task_key, default))
        except (TypeError, ValueError):
            return default

    def set_level(self, user_id: str, task_key: str, level: int) -> None:
        data = self._load()
        user = data.get("users", {}).get(user_id)
        if not isinstance(user, dict):
            raise StoreError(f"unknown user: {user_id}")
        levels = user.setdefault("training_levels", {})
        levels[task_key] = int(level)
        self._save(data)

    def _load(self) -> Dict:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"cannot read profiles from {self.path}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"malformed profile file: {self.path}")
        return data

    def _save(self, data: Dict) -> None:
        tmp = self.path.with_suffix(".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp.replace(self.path)
        except OSError as exc:
            raise StoreError(f"cannot write profiles to {self.path}") from exc
