[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "platformer_demo"
version = "0.1.0"
description = "A headless 2D platformer model: scene graph, simple physics, TMX tile maps, sprite animations and a keyboard-driven player controller."
requires-python = ">=3.10"
dependencies = []
keywords = ["platformer", "game", "tilemap", "tmx", "animation", "physics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Side-Scrolling/Arcade Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
platformer-demo = "platformer_demo.app:main"

[tool.hatch.build.targets.wheel]
packages = ["platformer_demo"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
