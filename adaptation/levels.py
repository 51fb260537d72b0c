from config.settings import LevelConfig


DEFAULT_LEVELS = LevelConfig()


def calculate_accuracy(hits: int, possible_matches: int) -> float:
    # possible_matches == 0 -> 0.0
    if possible_matches <= 0:
        return 0.0
    return max(0.0, min(1.0, hits / possible_matches))


def should_level_up(accuracy: float, current_level: int, threshold: float = DEFAULT_LEVELS.up_accuracy,
                    max_level: int = DEFAULT_LEVELS.max_level) -> bool:
    return accuracy >= threshold and current_level < max_level


def next_level(accuracy: float, current_level: int, threshold: float = DEFAULT_LEVELS.up_accuracy,
               max_level: int = DEFAULT_LEVELS.max_level) -> int:
    # Понижения уровня нет: либо +1, либо остаёмся.
    if should_level_up(accuracy, current_level, threshold, max_level):
        return current_level + 1
    return current_level


def clamp_level(level: int, cfg: LevelConfig = DEFAULT_LEVELS) -> int:
    return max(cfg.min_level, min(cfg.max_level, int(level)))
