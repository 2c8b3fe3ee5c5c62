"""A headless 2D platformer model: scenes, physics, tile maps, animations and a player controller."""

__version__ = "0.1.0"