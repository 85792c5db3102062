"""Environment-driven configuration for peerround."""

import os
from collections.abc import Mapping

from peerround.round_engine.models import EngineConfig


def load_engine_config(environ: Mapping[str, str] | None = None) -> EngineConfig:
    """Build an EngineConfig from environment variables.

    Recognised variables:
        PEERROUND_MAX_ATTEMPTS: retry budget for pairing and assignment (default 1000)
        PEERROUND_SEED: integer seed for tie-breaking (unset = random)
        PEERROUND_RECORD_OUTCOMES_AS_SEEN: "false" to ignore recorded evaluations
            when building the seen-papers history

    Args:
        environ: Mapping to read from (defaults to os.environ)
    """
    env = os.environ if environ is None else environ

    max_attempts = int(env.get("PEERROUND_MAX_ATTEMPTS", "1000"))
    seed = env.get("PEERROUND_SEED", "")

    return EngineConfig(
        max_pairing_attempts=max_attempts,
        max_assignment_attempts=max_attempts,
        seed=int(seed) if seed else None,
        record_outcomes_as_seen=env.get("PEERROUND_RECORD_OUTCOMES_AS_SEEN", "true").lower() != "false",
    )
