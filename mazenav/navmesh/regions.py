"""
Связность и регионы проходимых точек heightfield.

Шаги после фильтрации:
1. Связи с соседями по 4 направлениям (перепад высоты <= climb)
2. Эрозия на радиус агента
3. Удаление изолированных островов меньше min_region_area
4. Монотонное разбиение на регионы по строкам
5. Жадное поглощение регионов меньше merge_region_area
6. Граф регионов для поиска коридора
"""

from __future__ import annotations

from collections import deque

import numpy as np

from mazenav.navmesh.heightfield import WalkableSamples


# Порядок направлений (dx, dz): запад, юг(+z), восток, север(-z)
DIRECTIONS = [(-1, 0), (0, 1), (1, 0), (0, -1)]
DIR_WEST = 0
DIR_NORTH = 3


def build_links(samples: WalkableSamples, climb: float) -> np.ndarray:
    """
    Соседи каждой точки по DIRECTIONS.

    Из нескольких точек соседней колонки выбирается ближайшая по высоте,
    если перепад не больше climb.

    Returns:
        neighbors: (N, 4) int64, -1 = нет соседа.
    """
    n = len(samples)
    neighbors = np.full((n, len(DIRECTIONS)), -1, dtype=np.int64)

    columns: dict[tuple[int, int], list[int]] = {}
    for idx, (cx, cz) in enumerate(zip(samples.ix.tolist(), samples.iz.tolist())):
        columns.setdefault((cx, cz), []).append(idx)

    heights = samples.heights
    for idx in range(n):
        cx = int(samples.ix[idx])
        cz = int(samples.iz[idx])
        h = float(heights[idx])
        for d, (dx, dz) in enumerate(DIRECTIONS):
            candidates = columns.get((cx + dx, cz + dz))
            if not candidates:
                continue
            best = -1
            best_dh = climb
            for other in candidates:
                dh = abs(float(heights[other]) - h)
                if dh <= best_dh:
                    best = other
                    best_dh = dh
            neighbors[idx, d] = best

    return neighbors


def erode(neighbors: np.ndarray, radius: int) -> np.ndarray:
    """
    Эрозия проходимой области на radius колонок.

    За проход удаляются точки, у которых хотя бы один из 4 соседей
    отсутствует или уже удалён.

    Returns:
        (N,) bool — маска оставшихся точек.
    """
    alive = np.ones(len(neighbors), dtype=bool)
    for _ in range(radius):
        linked = neighbors >= 0
        alive_links = linked & alive[np.where(linked, neighbors, 0)]
        keep = alive & alive_links.all(axis=1)
        if np.array_equal(keep, alive):
            break
        alive = keep
    return alive


def compact(
    samples: WalkableSamples,
    neighbors: np.ndarray,
    keep: np.ndarray,
) -> tuple[WalkableSamples, np.ndarray]:
    """Удалить точки по маске, перенумеровав ссылки соседей."""
    remap = np.full(len(keep) + 1, -1, dtype=np.int64)
    kept_idx = np.nonzero(keep)[0]
    remap[kept_idx] = np.arange(len(kept_idx), dtype=np.int64)

    new_neighbors = neighbors[kept_idx]
    # индекс -1 указывает на последний элемент remap, он всегда -1
    new_neighbors = remap[new_neighbors]

    new_samples = WalkableSamples(
        ix=samples.ix[kept_idx],
        iz=samples.iz[kept_idx],
        heights=samples.heights[kept_idx],
    )
    return new_samples, new_neighbors


def connected_components(neighbors: np.ndarray) -> np.ndarray:
    """
    Компоненты связности (BFS).

    Returns:
        (N,) int64 — номер компоненты для каждой точки.
    """
    n = len(neighbors)
    labels = np.full(n, -1, dtype=np.int64)
    current = 0

    for seed in range(n):
        if labels[seed] >= 0:
            continue
        labels[seed] = current
        queue: deque[int] = deque([seed])
        while queue:
            idx = queue.popleft()
            for other in neighbors[idx]:
                if other >= 0 and labels[other] < 0:
                    labels[other] = current
                    queue.append(int(other))
        current += 1

    return labels


def small_component_mask(labels: np.ndarray, min_area: int) -> np.ndarray:
    """Маска точек, чья компонента не меньше min_area."""
    if min_area <= 0 or len(labels) == 0:
        return np.ones(len(labels), dtype=bool)
    sizes = np.bincount(labels)
    return sizes[labels] >= min_area


def monotone_regions(samples: WalkableSamples, neighbors: np.ndarray) -> np.ndarray:
    """
    Монотонное разбиение на регионы.

    Строки (iz) обходятся по порядку. Непрерывный по X отрезок строки (run)
    продолжает регион северного соседа, если все его северные соседи лежат
    в одном регионе и ни один другой run этой строки на него не претендует.
    Иначе run начинает новый регион.

    Точки должны быть отсортированы по (iz, ix, h).

    Returns:
        (N,) int64 — номер региона.
    """
    n = len(samples)
    regions = np.full(n, -1, dtype=np.int64)
    if n == 0:
        return regions

    next_region = 0
    start = 0
    iz = samples.iz
    ix = samples.ix

    while start < n:
        row = int(iz[start])
        end = start
        while end < n and int(iz[end]) == row:
            end += 1

        # Разбиваем строку на run'ы по западным связям
        run_of: dict[int, int] = {}
        run_tail: list[int] = []
        runs: list[list[int]] = []
        for idx in range(start, end):
            west = int(neighbors[idx, DIR_WEST])
            run = run_of.get(west, -1) if west >= 0 else -1
            if run >= 0 and run_tail[run] == int(ix[idx]):
                run = -1
            if run < 0:
                run = len(runs)
                runs.append([])
                run_tail.append(-1)
            runs[run].append(idx)
            run_tail[run] = int(ix[idx])
            run_of[idx] = run

        # Северные регионы каждого run'а
        north_sets: list[set[int]] = []
        claims: dict[int, int] = {}
        for run in runs:
            north: set[int] = set()
            for idx in run:
                other = int(neighbors[idx, DIR_NORTH])
                if other >= 0 and regions[other] >= 0:
                    north.add(int(regions[other]))
            north_sets.append(north)
            for r in north:
                claims[r] = claims.get(r, 0) + 1

        for run, north in zip(runs, north_sets):
            if len(north) == 1:
                (candidate,) = north
                if claims[candidate] == 1:
                    regions[run] = candidate
                    continue
            regions[run] = next_region
            next_region += 1

        start = end

    return regions


def greedy_absorption(
    regions: np.ndarray,
    neighbors: np.ndarray,
    merge_area: int,
) -> np.ndarray:
    """
    Жадное поглощение: регион меньше merge_area вливается в крупнейшего соседа.

    Обрабатывается всегда самый маленький из подходящих регионов. Регионы
    без соседей остаются как есть.

    Returns:
        (N,) int64 — номера регионов, перенумерованные с нуля подряд.
    """
    regions = regions.copy()
    if len(regions) == 0:
        return regions

    if merge_area > 0:
        sizes: dict[int, int] = {}
        for r in regions.tolist():
            sizes[r] = sizes.get(r, 0) + 1

        adjacency: dict[int, set[int]] = {r: set() for r in sizes}
        for idx in range(len(regions)):
            a = int(regions[idx])
            for other in neighbors[idx]:
                if other < 0:
                    continue
                b = int(regions[other])
                if a != b:
                    adjacency[a].add(b)
                    adjacency[b].add(a)

        while True:
            candidates = [
                r for r, size in sizes.items()
                if size < merge_area and adjacency[r]
            ]
            if not candidates:
                break
            small = min(candidates, key=lambda r: (sizes[r], r))
            target = max(adjacency[small], key=lambda r: (sizes[r], -r))

            regions[regions == small] = target
            sizes[target] += sizes.pop(small)

            for r in adjacency.pop(small):
                adjacency[r].discard(small)
                if r != target:
                    adjacency[r].add(target)
                    adjacency[target].add(r)
            adjacency[target].discard(target)

    _, relabeled = np.unique(regions, return_inverse=True)
    return relabeled.astype(np.int64).reshape(-1)


def region_graph(
    regions: np.ndarray,
    neighbors: np.ndarray,
    positions: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Граф регионов: два региона соседние, если между их точками есть связь.

    Args:
        regions: (N,) номера регионов 0..R-1.
        neighbors: (N, 4) связи точек.
        positions: (N, 3) координаты точек.

    Returns:
        region_neighbors: (R, K) int64, -1 = нет соседа.
        centers: (R, 3) средние координаты точек региона.
    """
    count = int(regions.max()) + 1 if len(regions) else 0
    linked: list[set[int]] = [set() for _ in range(count)]
    for idx in range(len(regions)):
        a = int(regions[idx])
        for other in neighbors[idx]:
            if other < 0:
                continue
            b = int(regions[other])
            if a != b:
                linked[a].add(b)
                linked[b].add(a)

    width = max([len(s) for s in linked] + [1])
    region_neighbors = np.full((count, width), -1, dtype=np.int64)
    for r, others in enumerate(linked):
        region_neighbors[r, : len(others)] = sorted(others)

    centers = np.zeros((count, 3), dtype=np.float64)
    if count:
        np.add.at(centers, regions, positions)
        sizes = np.bincount(regions, minlength=count)
        centers /= sizes[:, None]
    return region_neighbors, centers
