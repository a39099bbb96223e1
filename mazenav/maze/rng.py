"""
Детерминированный генератор псевдослучайных чисел.

64-битный линейный конгруэнтный генератор. Один и тот же seed всегда даёт
одну и ту же последовательность, поэтому лабиринт воспроизводим в тестах.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

_MASK64 = (1 << 64) - 1
_MULTIPLIER = 6364136223846793005
_INCREMENT = 1


class SeededGenerator:
    """
    LCG: state = state * 6364136223846793005 + 1 (mod 2^64).

    next_u64() возвращает новое состояние целиком.
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        if seed < 0:
            raise ValueError(f"seed must be non-negative, got {seed}")
        self._state = seed & _MASK64

    @property
    def state(self) -> int:
        """Текущее внутреннее состояние."""
        return self._state

    def next_u64(self) -> int:
        self._state = (self._state * _MULTIPLIER + _INCREMENT) & _MASK64
        return self._state

    def randbelow(self, n: int) -> int:
        """Целое в [0, n). Простое взятие по модулю, как в исходном генераторе лабиринта."""
        if n <= 0:
            raise ValueError(f"n must be positive, got {n}")
        return self.next_u64() % n

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("cannot choose from an empty sequence")
        return items[self.randbelow(len(items))]
