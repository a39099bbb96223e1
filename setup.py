#!/usr/bin/env python3

from setuptools import setup, find_packages
import os


directory = os.path.dirname(os.path.realpath(__file__))


if __name__ == "__main__":
    setup(
        name="mazenav",
        packages=find_packages(include=["mazenav", "mazenav.*"]),
        python_requires='>3.10.0',
        version="0.1.0",
        license="MIT",
        description="Procedural two-level maze, navmesh build and agent navigation",
        long_description=open(os.path.join(
            directory, "README.md"), "r", encoding="utf8").read(),
        long_description_content_type="text/markdown",
        keywords=["navmesh", "pathfinding", "maze", "procedural"],
        classifiers=[],
        include_package_data=True,
        install_requires=[
            "numpy",
            "scipy",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "mazenav=mazenav.__main__:main",
            ],
        },
        zip_safe=False,
    )
