[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ballpit"
version = "0.2.0"
description = "A 2D ball physics sandbox with spatial-grid collisions, a small sprite engine and a pure-Python PNG decoder"
requires-python = ">=3.10"
dependencies = [
    "pygame",
]
keywords = ["game", "physics", "simulation", "collision", "sprites", "png", "deflate"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ballpit = "ballpit.main_game:main"

[tool.hatch.build.targets.wheel]
packages = ["ballpit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
