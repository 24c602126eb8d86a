# src/tm_matching/application/service.py
from src.tm_matching.engine.engine import MatchingEngine
from src.tm_matching.engine.lock import build_matching_lock

_engine: MatchingEngine | None = None


def get_matching_engine() -> MatchingEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = MatchingEngine(lock=build_matching_lock())
    return _engine


def set_matching_engine(engine: MatchingEngine | None) -> None:
    """Replace the process-wide engine (tests, alternative lock backends)."""
    global _engine  # noqa: PLW0603
    _engine = engine
