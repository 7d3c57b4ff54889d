from .events import EventTypes
from .bus import EventBus
from .progress import ProgressReporter

__all__ = ["EventTypes", "EventBus", "ProgressReporter"]
