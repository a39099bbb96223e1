"""DestinationMarker — анимация маркера цели (покачивание, пульсация, вращение)."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np


class DestinationMarker:
    """
    Косметический маркер точки назначения.

    Поза зависит только от времени с последнего place():
        position = base + (0, hover + sin(t * bob_frequency) * bob_amplitude, 0)
        scale = 1 + pulse_amplitude * sin(t * pulse_frequency)
        yaw = spin_speed * t (вокруг +Y)
    """

    def __init__(
        self,
        radius: float = 0.045,
        hover: float = 0.2,
        bob_amplitude: float = 0.02,
        bob_frequency: float = 2.5,
        pulse_amplitude: float = 0.15,
        pulse_frequency: float = 3.5,
        spin_speed: float = 1.6,
    ) -> None:
        self.radius = radius
        self.hover = hover
        self.bob_amplitude = bob_amplitude
        self.bob_frequency = bob_frequency
        self.pulse_amplitude = pulse_amplitude
        self.pulse_frequency = pulse_frequency
        self.spin_speed = spin_speed

        self._base: Optional[np.ndarray] = None
        self._time: float = 0.0

    @property
    def is_placed(self) -> bool:
        return self._base is not None

    @property
    def base(self) -> Optional[np.ndarray]:
        return None if self._base is None else self._base.copy()

    @property
    def elapsed(self) -> float:
        return self._time

    def place(self, position) -> None:
        """Поставить маркер и сбросить время анимации."""
        self._base = np.asarray(position, dtype=np.float32).reshape(3).copy()
        self._time = 0.0

    def hide(self) -> None:
        self._base = None
        self._time = 0.0

    def update(self, dt: float) -> None:
        if self._base is None or dt <= 0:
            return
        self._time += dt

    @property
    def position(self) -> Optional[np.ndarray]:
        if self._base is None:
            return None
        offset = self.hover + math.sin(self._time * self.bob_frequency) * self.bob_amplitude
        return self._base + np.array([0.0, offset, 0.0], dtype=np.float32)

    @property
    def scale(self) -> float:
        return 1.0 + self.pulse_amplitude * math.sin(self._time * self.pulse_frequency)

    @property
    def yaw(self) -> float:
        return self.spin_speed * self._time

    @property
    def rotation(self) -> np.ndarray:
        """Кватернион (x, y, z, w) поворота на yaw вокруг +Y."""
        half = self.yaw * 0.5
        return np.array([0.0, math.sin(half), 0.0, math.cos(half)], dtype=np.float32)
