import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from config.paths import app_data_dir


@dataclass(frozen=True)
class WindowConfig:
    width: int = 1280
    height: int = 720
    fps: int = 60
    title: str = "Cat Focus Training"


@dataclass(frozen=True)
class NBackConfig:
    alphabet: Tuple[str, ...] = ("A", "B", "C", "D", "H", "K", "L", "M")
    sequence_length: int = 15
    stimulus_duration_ms: int = 2000
    forced_match_probability: float = 0.3
    group: str = "G4"
    profile_key: str = "g4_nback"


@dataclass(frozen=True)
class GazeConfig:
    window_size: int = 4
    lerp_factor: float = 0.35
    deadzone: float = 3.0
    startup_samples: int = 3  # deadzone is bypassed until the window holds this many samples


@dataclass(frozen=True)
class DistractorLevel:
    num_distractors: int
    speed: float


@dataclass(frozen=True)
class AttentionConfig:
    total_sets: int = 3
    set_duration_sec: int = 90
    rest_duration_sec: int = 15
    hint_duration_sec: int = 3
    bounds_width: int = 800
    bounds_height: int = 500
    object_size: int = 120
    hit_tolerance: float = 150.0
    speed_jitter: Tuple[float, float] = (0.8, 1.3)
    levels: Tuple[DistractorLevel, ...] = (
        DistractorLevel(num_distractors=5, speed=3.3),
        DistractorLevel(num_distractors=7, speed=4.8),
        DistractorLevel(num_distractors=9, speed=6.8),
    )
    placeholder_asset: str = "https://placekitten.com/100/100"
    gaze_stream_limit: int = 500
    gaze_stream_sample_rate: float = 0.1
    group: str = "G2"
    profile_key: str = "g2_attention"

    def level_params(self, level: int) -> DistractorLevel:
        if 1 <= level <= len(self.levels):
            return self.levels[level - 1]
        return self.levels[0]


@dataclass(frozen=True)
class LevelConfig:
    min_level: int = 1
    max_level: int = 3
    start_level: int = 1
    up_accuracy: float = 0.8
    # server-side promotion for the gaze task used a stricter bar
    attention_up_accuracy: float = 0.85


@dataclass(frozen=True)
class StudyConfig:
    groups: Tuple[str, ...] = ("G1", "G2", "G3", "G4")
    max_per_group: int = 10
    min_age: int = 16
    max_age: int = 69
    min_occupation_len: int = 2


@dataclass(frozen=True)
class StorageConfig:
    profiles_path: Path
    sessions_path: Path
    sessions_url: str = ""
    api_key: str = ""
    timeout_sec: float = 2.5


def load_storage_config(data_dir: Optional[Path] = None) -> StorageConfig:
    env_dir = os.getenv("COGTRAIN_DATA_DIR", "").strip()
    if data_dir is None:
        data_dir = Path(env_dir).expanduser() if env_dir else app_data_dir()
    return StorageConfig(
        profiles_path=data_dir / "profiles.json",
        sessions_path=data_dir / "sessions.jsonl",
        sessions_url=os.getenv("COGTRAIN_SESSIONS_URL", "").strip(),
        api_key=os.getenv("COGTRAIN_API_KEY", "").strip(),
    )
