"""Two-level maze scene: layout, navmesh geometry and the agent loop."""

from mazenav.scene.config import MazeSceneConfig
from mazenav.scene.layout import (
    FloorPiece,
    Footprint,
    RenderPiece,
    SceneLayout,
    build_layout,
    build_navmesh_geometry,
    render_pieces,
)
from mazenav.scene.maze_scene import MazeScene

__all__ = [
    "MazeSceneConfig",
    "FloorPiece",
    "Footprint",
    "RenderPiece",
    "SceneLayout",
    "build_layout",
    "build_navmesh_geometry",
    "render_pieces",
    "MazeScene",
]
