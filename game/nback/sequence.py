import random
from typing import Optional, Sequence

from data.models import (
    NBackSequence,
    OUTCOME_CORRECT_REJECTION,
    OUTCOME_FALSE_ALARM,
    OUTCOME_HIT,
    OUTCOME_MISS,
)


def count_matches(sequence: Sequence[str], level: int) -> int:
    """Сколько позиций i >= level совпадают с i - level (полный перебор)."""
    matches = 0
    for i in range(level, len(sequence)):
        if sequence[i] == sequence[i - level]:
            matches += 1
    return matches


def generate_sequence(
    length: int,
    level: int,
    alphabet: Sequence[str],
    forced_match_probability: float = 0.3,
    rng: Optional[random.Random] = None,
) -> NBackSequence:
    """
    Генерирует последовательность стимулов для N-back уровня `level`.

    - с позиции level и дальше с вероятностью forced_match_probability
      копируем символ из i - level (принудительное совпадение)
    - иначе берём случайный символ алфавита; он может случайно совпасть
      с i - level, и это нормально: такое совпадение тоже надо поймать
    - match_count считаем заново по готовой последовательности,
      а не из вероятности
    """
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")
    if length <= level:
        raise ValueError(f"length must be greater than level ({length} <= {level})")
    if len(alphabet) < 2:
        raise ValueError("alphabet needs at least two symbols")
    if not 0.0 <= forced_match_probability <= 1.0:
        raise ValueError(f"forced_match_probability out of range: {forced_match_probability}")

    rng = rng or random.Random()
    symbols: list[str] = []

    for i in range(length):
        if i >= level and rng.random() < forced_match_probability:
            symbols.append(symbols[i - level])
        else:
            symbols.append(rng.choice(alphabet))

    return NBackSequence(
        symbols=tuple(symbols),
        level=level,
        match_count=count_matches(symbols, level),
    )


def is_match(sequence: Sequence[str], level: int, index: int) -> bool:
    if index < level:
        return False
    return sequence[index] == sequence[index - level]


def classify_response(sequence: Sequence[str], level: int, index: int, responded: bool) -> str:
    # для index < level сравнивать не с чем, любой клик считается ложной тревогой
    if is_match(sequence, level, index):
        return OUTCOME_HIT if responded else OUTCOME_MISS
    return OUTCOME_FALSE_ALARM if responded else OUTCOME_CORRECT_REJECTION
