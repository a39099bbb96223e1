"""
AgentController — движение точки по списку waypoints с постоянной скоростью.

Состояния:
- IDLE: пути нет, update ничего не делает
- FOLLOWING: агент идёт к path[index]

Новый путь всегда заменяет текущий, отдельной отмены нет.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

import numpy as np

from mazenav import log
from mazenav.core.event import Event


class MotionState(Enum):
    IDLE = "idle"
    FOLLOWING = "following"


class AgentController:
    """
    Контроллер движения агента.

    За тик update(dt) агент либо сдвигается к текущей точке на
    min(speed * dt, расстояние), либо — если он уже ближе arrive_tolerance —
    переключается на следующую точку без движения в этом тике.

    События:
        on_path_assigned() — назначен непустой путь.
        on_waypoint_reached(index) — точка index достигнута.
        on_destination_reached() — достигнута последняя точка.
        on_stopped() — движение прервано (stop или пустой путь).
    """

    def __init__(
        self,
        position=(0.0, 0.0, 0.0),
        speed: float = 0.5,
        arrive_tolerance: float = 0.02,
    ) -> None:
        if not speed > 0:
            raise ValueError(f"speed must be positive, got {speed}")
        if arrive_tolerance < 0:
            raise ValueError(f"arrive_tolerance must be non-negative, got {arrive_tolerance}")

        self.speed: float = float(speed)
        self.arrive_tolerance: float = float(arrive_tolerance)

        self._position = np.asarray(position, dtype=np.float32).reshape(3).copy()
        self._path: list[np.ndarray] = []
        self._index: int = 0
        self._state = MotionState.IDLE

        self.on_path_assigned: Event = Event()
        self.on_waypoint_reached: Event[int] = Event()
        self.on_destination_reached: Event = Event()
        self.on_stopped: Event = Event()

    @property
    def position(self) -> np.ndarray:
        return self._position.copy()

    @property
    def state(self) -> MotionState:
        return self._state

    @property
    def is_moving(self) -> bool:
        return self._state == MotionState.FOLLOWING

    @property
    def path(self) -> list[np.ndarray]:
        """Копия текущего пути."""
        return [p.copy() for p in self._path]

    @property
    def waypoint_index(self) -> int:
        return self._index

    @property
    def current_waypoint(self) -> Optional[np.ndarray]:
        if self._state != MotionState.FOLLOWING:
            return None
        return self._path[self._index].copy()

    @property
    def destination(self) -> Optional[np.ndarray]:
        if not self._path:
            return None
        return self._path[-1].copy()

    def remaining_path(self) -> list[np.ndarray]:
        if self._state != MotionState.FOLLOWING:
            return []
        return [p.copy() for p in self._path[self._index:]]

    def assign_path(self, waypoints: Optional[Iterable]) -> bool:
        """
        Назначить путь. Пустой путь или None останавливает агента.

        Returns:
            True если агент начал движение.
        """
        points = [] if waypoints is None else [
            np.asarray(p, dtype=np.float32).reshape(3).copy() for p in waypoints
        ]
        if not points:
            self.stop()
            return False

        self._path = points
        self._index = 0
        self._state = MotionState.FOLLOWING
        log.debug(f"[Agent] path assigned with {len(points)} waypoints")
        self.on_path_assigned.emit()
        return True

    def stop(self) -> None:
        """Сбросить путь и перейти в IDLE."""
        was_moving = self._state == MotionState.FOLLOWING
        self._path = []
        self._index = 0
        self._state = MotionState.IDLE
        if was_moving:
            log.debug("[Agent] stopped")
            self.on_stopped.emit()

    def teleport(self, position) -> None:
        """Переставить агента без изменения пути."""
        self._position = np.asarray(position, dtype=np.float32).reshape(3).copy()

    def update(self, dt: float) -> None:
        """Один тик движения."""
        if self._state != MotionState.FOLLOWING or dt <= 0:
            return

        target = self._path[self._index]
        direction = target - self._position
        distance = float(np.linalg.norm(direction))

        if distance < self.arrive_tolerance:
            reached = self._index
            self._index += 1
            self.on_waypoint_reached.emit(reached)

            if self._index >= len(self._path):
                log.info("[Agent] destination reached")
                self._state = MotionState.IDLE
                self.on_destination_reached.emit()
            return

        step = min(self.speed * dt, distance)
        self._position = (self._position + direction / distance * step).astype(np.float32)
