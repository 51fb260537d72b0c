from game.attention.dwell import DwellState, dwell_accuracy, dwell_step
from game.attention.objects import StaticAssetProvider, spawn_objects, step_objects
from game.attention.session import AttentionSession

__all__ = [
    "AttentionSession",
    "DwellState",
    "StaticAssetProvider",
    "dwell_accuracy",
    "dwell_step",
    "spawn_objects",
    "step_objects",
]
