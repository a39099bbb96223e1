"""
mazenav - procedural two-level maze, navmesh build and agent navigation.

Packages:
    maze      - seeded depth-first maze generation
    geometry  - triangle soup synthesis (floors, wall boxes, ramp)
    navmesh   - build adapter, engine protocol, heightfield engine
    agent     - waypoint following and destination marker
    scene     - assembled demo scene
"""

__version__ = "0.1.0"
