import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    api_key: str
    db_path: Path
    host: str = "127.0.0.1"
    port: int = 8000


def load_settings() -> Settings:
    """Настройки сервиса сессий: всё из окружения, БД по умолчанию рядом с backend/."""
    backend_dir = Path(__file__).resolve().parents[1]
    db_path = Path(os.getenv("COGTRAIN_DB_PATH", str(backend_dir / "data" / "sessions.db"))).expanduser()
    return Settings(
        api_key=os.getenv("COGTRAIN_API_KEY", "").strip(),
        db_path=db_path,
        host=os.getenv("COGTRAIN_HOST", "127.0.0.1").strip() or "127.0.0.1",
        port=int(os.getenv("COGTRAIN_PORT", "8000")),
    )
