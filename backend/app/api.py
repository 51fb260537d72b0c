import logging
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from backend.app.config import load_settings
from backend.app.db import ensure_db, read_sessions, write_session, write_sighting
from backend.app.progress import build_progress
from study.rules import validate_sighting_report

logger = logging.getLogger(__name__)

REQUIRED_SESSION_FIELDS = ("kind", "user_id", "group", "submitted_at", "accuracy", "level")
SESSION_KINDS = ("nback", "attention")

settings = load_settings()
app = FastAPI(title="Cat Focus Sessions API", version="0.1.0")


@app.on_event("startup")
def _startup() -> None:
    ensure_db(settings.db_path)


def _check_api_key(body: dict[str, Any]) -> str:
    api_key = str(body.get("api_key", ""))
    if not api_key or api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid_api_key")
    return api_key


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


@app.post("/v1/sessions")
def ingest_session(body: dict[str, Any]) -> JSONResponse:
    api_key = _check_api_key(body)

    session = body.get("session")
    if not isinstance(session, dict):
        raise HTTPException(status_code=400, detail="session_must_be_object")
    missing = [field for field in REQUIRED_SESSION_FIELDS if field not in session]
    if missing:
        raise HTTPException(status_code=400, detail=f"session_missing_fields:{','.join(missing)}")
    if session["kind"] not in SESSION_KINDS:
        raise HTTPException(status_code=400, detail="unknown_session_kind")
    try:
        accuracy = float(session["accuracy"])
        int(session["level"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="invalid_metrics")
    if not 0.0 <= accuracy <= 1.0:
        raise HTTPException(status_code=400, detail="accuracy_out_of_range")

    client_version = str(body.get("client_version", "unknown"))
    session_id = write_session(
        db_path=settings.db_path,
        api_key=api_key,
        client_version=client_version,
        session=session,
    )
    logger.info("Stored %s session %s for %s", session["kind"], session_id, session["user_id"])
    return JSONResponse(content={"ok": True, "id": session_id}, status_code=200)


@app.get("/v1/users/{user_id}/sessions")
def user_sessions(user_id: str, kind: Optional[str] = None, limit: int = 100) -> dict[str, Any]:
    if kind is not None and kind not in SESSION_KINDS:
        raise HTTPException(status_code=400, detail="unknown_session_kind")
    rows = read_sessions(settings.db_path, user_id, kind=kind, limit=limit)
    return {"ok": True, "rows": rows, "count": len(rows)}


@app.post("/v1/sightings")
def report_sighting(body: dict[str, Any]) -> JSONResponse:
    _check_api_key(body)
    user_id = str(body.get("user_id", "")).strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="missing_user_id")
    has_sighted = bool(body.get("has_sighted", False))
    try:
        count = int(body.get("count", 0) or 0)
        confidence = int(body.get("confidence", 0) or 0)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="invalid_report")
    if not validate_sighting_report(has_sighted, count, confidence):
        raise HTTPException(status_code=400, detail="incomplete_sighting_report")

    report_id = write_sighting(settings.db_path, user_id, has_sighted, count, confidence)
    return JSONResponse(content={"ok": True, "id": report_id}, status_code=200)


@app.get("/v1/users/{user_id}/progress")
def user_progress(user_id: str, kind: Optional[str] = None) -> dict[str, Any]:
    if kind is not None and kind not in SESSION_KINDS:
        raise HTTPException(status_code=400, detail="unknown_session_kind")
    return {"ok": True, **build_progress(settings.db_path, user_id, kind=kind)}


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
