"""External transcoding task dispatch."""

from src.infrastructure.tasks.base import TaskDispatcherBase
from src.infrastructure.tasks.ecs_dispatcher import ECSTaskDispatcher

__all__ = [
    "TaskDispatcherBase",
    "ECSTaskDispatcher",
]
