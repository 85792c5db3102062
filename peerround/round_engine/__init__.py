"""Round pairing and evaluator assignment for peer-review activities."""

from peerround.round_engine.engine import EngineRegistry, RoundEngine
from peerround.round_engine.models import (
    ActivityState,
    EngineConfig,
    Pairing,
    RoundResult,
    RoundWarning,
)

__all__ = [
    "RoundEngine",
    "EngineRegistry",
    "ActivityState",
    "EngineConfig",
    "Pairing",
    "RoundResult",
    "RoundWarning",
]
