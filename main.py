import argparse
import logging
import sys
from typing import Optional

from adaptation.levels import clamp_level
from config.settings import (
    AttentionConfig,
    LevelConfig,
    NBackConfig,
    StorageConfig,
    StudyConfig,
    WindowConfig,
    load_storage_config,
)
from data.errors import StoreError
from data.models import UserRef
from data.profile_store import ProfileStore
from data.session_client import HttpSessionLog
from data.session_log import JsonlSessionLog, SessionLog
from game.app import TASK_ATTENTION, TASK_NBACK, TrainingApp
from study.rules import is_group_full, validate_demographics, validate_registration

logger = logging.getLogger("cogtrain")


def build_session_log(storage: StorageConfig) -> SessionLog:
    # backend настроен: пишем туда, иначе в локальный JSONL.
    if storage.sessions_url and HttpSessionLog.is_valid_endpoint(storage.sessions_url):
        client = HttpSessionLog(storage.sessions_url, storage.api_key, timeout_sec=storage.timeout_sec)
        if client.enabled:
            return client
        logger.warning("COGTRAIN_SESSIONS_URL is set but COGTRAIN_API_KEY is empty, using local log")
    return JsonlSessionLog(str(storage.sessions_path))


def register_user(
    store: ProfileStore,
    user_id: str,
    group: Optional[str],
    email: str,
    age: Optional[int],
    occupation: str,
    study: StudyConfig = StudyConfig(),
) -> UserRef:
    """
    Регистрация нового участника.

    1) проверяем заполненность формы
    2) анкета: возраст и род занятий
    3) группа не должна быть переполнена
    """
    if not validate_registration(user_id, group, email):
        raise ValueError("name, group and email are required")
    if group not in study.groups:
        raise ValueError(f"unknown group: {group}")
    valid, error = validate_demographics(age, occupation, study)
    if not valid:
        raise ValueError(error)
    if is_group_full(store.count_group(group), study.max_per_group):
        raise ValueError(f"group {group} is full")
    store.create_user(user_id, group)
    logger.info("Registered %s in %s", user_id, group)
    return UserRef(user_id=user_id, group=group)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cat Focus cognitive training")
    parser.add_argument("task", choices=[TASK_NBACK, TASK_ATTENTION])
    parser.add_argument("--user", required=True)
    parser.add_argument("--group", default=None)
    parser.add_argument("--email", default="")
    parser.add_argument("--age", type=int, default=None)
    parser.add_argument("--occupation", default="")
    parser.add_argument("--level", type=int, default=None, help="override the stored level")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    storage = load_storage_config()
    store = ProfileStore(str(storage.profiles_path))
    level_cfg = LevelConfig()
    nback_cfg = NBackConfig()
    attention_cfg = AttentionConfig()

    try:
        profile = store.get_user(args.user)
        if profile is None:
            user = register_user(store, args.user, args.group, args.email, args.age, args.occupation)
        else:
            user = UserRef(user_id=args.user, group=str(profile.get("group", "")))
        task_key = nback_cfg.profile_key if args.task == TASK_NBACK else attention_cfg.profile_key
        level = args.level if args.level is not None else store.get_level(user.user_id, task_key, level_cfg.start_level)
    except (ValueError, StoreError) as exc:
        logger.error("Cannot start session for %s: %s", args.user, exc)
        return 2

    level = clamp_level(level, level_cfg)

    app = TrainingApp(
        window=WindowConfig(),
        task=args.task,
        user=user,
        level=level,
        profile_store=store,
        session_log=build_session_log(storage),
        nback_cfg=nback_cfg,
        attention_cfg=attention_cfg,
        level_cfg=level_cfg,
    )
    metrics = app.run()
    if metrics is None:
        logger.info("Session aborted before completion")
        return 1
    print(f"accuracy={metrics.accuracy:.2f} level={metrics.level} promoted={metrics.promoted}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
