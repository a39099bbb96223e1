"""NavMesh build errors."""

from __future__ import annotations

from enum import IntEnum


class NavMeshErrorCode(IntEnum):
    NAVMESH_DATA = 1
    INVALID_PARAMS = 2


class NavMeshError(Exception):
    """Базовая ошибка построения/использования NavMesh."""

    default_code = NavMeshErrorCode.NAVMESH_DATA

    def __init__(self, reason: str, code: NavMeshErrorCode | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.code = self.default_code if code is None else code


class InvalidInputError(NavMeshError, ValueError):
    """Пустые или невыровненные буферы вершин/индексов, некорректная конфигурация."""

    default_code = NavMeshErrorCode.INVALID_PARAMS


class NavMeshBuildError(NavMeshError):
    """Движок отверг геометрию (например, после вокселизации не осталось проходимых спанов)."""


class NavMeshNotBuiltError(NavMeshError, RuntimeError):
    """Запрос к адаптеру до успешного построения."""

    default_code = NavMeshErrorCode.INVALID_PARAMS
