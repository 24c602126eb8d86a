# src/tm_lifecycle/application/service.py
from src.tm_lifecycle.application.scheduler import LifecycleScheduler
from src.tm_matching.application.service import get_matching_engine

_scheduler: LifecycleScheduler | None = None


def get_lifecycle_scheduler() -> LifecycleScheduler:
    global _scheduler  # noqa: PLW0603
    if _scheduler is None:
        _scheduler = LifecycleScheduler(engine=get_matching_engine())
    return _scheduler


def set_lifecycle_scheduler(scheduler: LifecycleScheduler | None) -> None:
    global _scheduler  # noqa: PLW0603
    _scheduler = scheduler
