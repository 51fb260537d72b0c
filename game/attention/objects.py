import math
import random
from typing import List, Protocol, Sequence

from config.settings import AttentionConfig
from data.models import MovingObject


class AssetProvider(Protocol):
    def target_asset(self) -> str:
        ...

    def distractor_assets(self) -> Sequence[str]:
        ...


class StaticAssetProvider:
    def __init__(self, target: str, distractors: Sequence[str]) -> None:
        self._target = target
        self._distractors = list(distractors)

    def target_asset(self) -> str:
        return self._target

    def distractor_assets(self) -> Sequence[str]:
        return list(self._distractors)


def _spawn(asset_id: str, is_target: bool, speed: float, cfg: AttentionConfig, rng: random.Random) -> MovingObject:
    size = cfg.object_size
    low, high = cfg.speed_jitter
    actual_speed = speed * rng.uniform(low, high)
    angle = rng.random() * 2 * math.pi
    return MovingObject(
        object_id=f"obj-{rng.getrandbits(32):08x}",
        asset_id=asset_id,
        is_target=is_target,
        x=rng.random() * (cfg.bounds_width - size) + size / 2,
        y=rng.random() * (cfg.bounds_height - size) + size / 2,
        vx=math.cos(angle) * actual_speed,
        vy=math.sin(angle) * actual_speed,
    )


def spawn_objects(level: int, assets: AssetProvider, cfg: AttentionConfig, rng: random.Random) -> List[MovingObject]:
    """Цель первой, за ней отвлекающие объекты (ассеты перемешаны и идут по кругу)."""
    params = cfg.level_params(level)
    objects = [_spawn(assets.target_asset(), True, params.speed, cfg, rng)]

    distractors = list(assets.distractor_assets()) or [cfg.placeholder_asset]
    rng.shuffle(distractors)
    for i in range(params.num_distractors):
        objects.append(_spawn(distractors[i % len(distractors)], False, params.speed, cfg, rng))
    return objects


def step_objects(objects: List[MovingObject], cfg: AttentionConfig) -> None:
    # скорость в единицах за кадр; отскок, когда центр выходит за поле
    half = cfg.object_size / 2
    for obj in objects:
        obj.x += obj.vx
        obj.y += obj.vy
        if obj.x < half or obj.x > cfg.bounds_width - half:
            obj.vx = -obj.vx
        if obj.y < half or obj.y > cfg.bounds_height - half:
            obj.vy = -obj.vy


def find_target(objects: List[MovingObject]):
    return next((obj for obj in objects if obj.is_target), None)
