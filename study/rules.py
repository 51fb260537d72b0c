from typing import Iterable, Optional, Tuple

from config.settings import StudyConfig


DEFAULT_STUDY = StudyConfig()

ERROR_MISSING_AGE = "missing_age"
ERROR_AGE_OUT_OF_RANGE = "age_out_of_range"
ERROR_OCCUPATION_TOO_SHORT = "occupation_too_short"


def is_group_full(current_count: int, max_per_group: int = DEFAULT_STUDY.max_per_group) -> bool:
    return current_count >= max_per_group


def validate_registration(name: str, group: Optional[str], email: str) -> bool:
    """Регистрация: имя (не из одних пробелов), группа и почта должны быть заполнены."""
    if not (name or "").strip():
        return False
    if not group:
        return False
    if not email:
        return False
    return True


def validate_sighting_report(has_sighted: bool, count: int, confidence: int) -> bool:
    # Отчёт "не видел" валиден без доп. полей; "видел" требует count >= 1 и оценку уверенности.
    if not has_sighted:
        return True
    if count < 1:
        return False
    if confidence == 0:
        return False
    return True


def calculate_total_sightings(daily_counts: Iterable[Optional[int]]) -> int:
    return sum(count or 0 for count in daily_counts)


def validate_demographics(
    age: Optional[int],
    occupation: str,
    cfg: StudyConfig = DEFAULT_STUDY,
) -> Tuple[bool, Optional[str]]:
    """
    Критерии включения в исследование.

    Возвращает (valid, error), где error это один из кодов ERROR_* или None.
    Возраст проверяется включительно: cfg.min_age..cfg.max_age.
    """
    if age is None:
        return False, ERROR_MISSING_AGE
    if age < cfg.min_age or age > cfg.max_age:
        return False, ERROR_AGE_OUT_OF_RANGE
    if len((occupation or "").strip()) < cfg.min_occupation_len:
        return False, ERROR_OCCUPATION_TOO_SHORT
    return True, None
