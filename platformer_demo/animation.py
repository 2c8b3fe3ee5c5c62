"""Sprite frame caches and frame-based animations."""

from __future__ import annotations

import logging
import os
import plistlib
import re
from dataclasses import dataclass, field
from typing import Optional

from .nodes import Rect, Size, Sprite, Vec2

log = logging.getLogger(__name__)


class AnimationError(Exception):
    """Raised when frames or animations cannot be loaded."""


@dataclass(frozen=True)
class SpriteFrame:
    name: str
    texture: str
    rect: Rect
    rotated: bool = False


def _numbers(text: str) -> list[float]:
    return [float(n) for n in re.findall(r"-?\d+(?:\.\d+)?", text)]


def _frame_rect(info: dict) -> tuple[Rect, bool]:
    if "frame" in info:
        x, y, w, h = _numbers(info["frame"])[:4]
        return Rect(x, y, w, h), bool(info.get("rotated", False))
    if "textureRect" in info:
        x, y, w, h = _numbers(info["textureRect"])[:4]
        return Rect(x, y, w, h), bool(info.get("textureRotated", False))
    return Rect(info.get("x", 0), info.get("y", 0), info.get("width", 0), info.get("height", 0)), False


class SpriteFrameCache:
    """Named sprite frames loaded from plist atlases."""

    def __init__(self) -> None:
        self.frames: dict[str, SpriteFrame] = {}

    def add_sprite_frames_with_file(self, plist_file: str, png_file: str) -> int:
        """Load every frame from an atlas; return how many were added."""
        try:
            with open(plist_file, "rb") as fh:
                data = plistlib.load(fh)
        except (OSError, plistlib.InvalidFileException, ValueError) as exc:
            raise AnimationError(f"cannot read plist {plist_file}: {exc}") from exc
        frames = data.get("frames") if isinstance(data, dict) else None
        if not isinstance(frames, dict):
            raise AnimationError(f"no frames in {plist_file}")
        for name, info in frames.items():
            rect, rotated = _frame_rect(info)
            self.frames[name] = SpriteFrame(name, png_file, rect, rotated)
        return len(frames)

    def get_sprite_frame(self, name: str) -> Optional[SpriteFrame]:
        return self.frames.get(name)


@dataclass
class Animation:
    frames: list[SpriteFrame]
    delay_per_unit: float
    loops: int = 1
    name: str = ""

    @property
    def duration(self) -> float:
        return self.delay_per_unit * len(self.frames)


@dataclass
class Animate:
    animation: Animation
    elapsed: float = field(default=0.0)

    @property
    def duration(self) -> float:
        return self.animation.duration


def frame_name_candidates(animation_name: str, index: int) -> list[str]:
    """Frame names tried, in order, for one frame of a named animation."""
    return [
        f"{animation_name}_{index}.png",
        f"{animation_name}{index}.png",
        f"{animation_name}_{index:02d}.png",
        f"{animation_name}{index:02d}.png",
        f"frame_{index}.png",
        f"frame{index}.png",
        f"frame_{index:02d}.png",
        f"frame{index:02d}.png",
    ]


def load_sprite_frame_cache(cache: SpriteFrameCache, plist_file: str, png_file: str) -> None:
    if not os.path.isfile(plist_file):
        raise AnimationError(f"Plist file not found: {plist_file}")
    if not os.path.isfile(png_file):
        raise AnimationError(f"PNG file not found: {png_file}")
    cache.add_sprite_frames_with_file(plist_file, png_file)
    log.debug("Loaded sprite frames from: %s, %s", plist_file, png_file)


def create_animation(
    cache: SpriteFrameCache,
    plist_file: str,
    png_file: str,
    scale: float = 1.0,
    anchor_point: Vec2 = Vec2(0.5, 0.5),
    frame_count: int = 1,
    animation_name: str = "default_animation",
    frame_delay: float = 0.1,
    is_loop: bool = True,
) -> Animation:
    load_sprite_frame_cache(cache, plist_file, png_file)
    frames = []
    for i in range(frame_count):
        frame = next(
            (f for f in map(cache.get_sprite_frame, frame_name_candidates(animation_name, i)) if f is not None),
            None,
        )
        if frame is None:
            log.warning("Could not find frame %d for animation %s", i, animation_name)
        else:
            frames.append(frame)
    if not frames:
        raise AnimationError(f"No frames found for animation {animation_name}")
    return Animation(frames, frame_delay, -1 if is_loop else 1, animation_name)


def create_animation_with_pattern(
    cache: SpriteFrameCache,
    plist_file: str,
    png_file: str,
    frame_name_pattern: str,
    start_frame: int,
    end_frame: int,
    scale: float = 1.0,
    anchor_point: Vec2 = Vec2(0.5, 0.5),
    frame_delay: float = 0.1,
    is_loop: bool = True,
) -> Animation:
    load_sprite_frame_cache(cache, plist_file, png_file)
    frames = []
    for i in range(start_frame, end_frame + 1):
        name = frame_name_pattern % i
        frame = cache.get_sprite_frame(name)
        if frame is None:
            log.warning("Could not find frame: %s", name)
        else:
            frames.append(frame)
    if not frames:
        raise AnimationError(f"No frames found with pattern {frame_name_pattern}")
    return Animation(frames, frame_delay, -1 if is_loop else 1, frame_name_pattern)


def create_animate_action(animation: Optional[Animation]) -> Animate:
    if animation is None:
        raise AnimationError("Animation is null")
    return Animate(animation)


def create_sprite_with_frame(
    cache: SpriteFrameCache,
    plist_file: str,
    png_file: str,
    frame_name: str,
    scale: float = 1.0,
    anchor_point: Vec2 = Vec2(0.5, 0.5),
) -> Sprite:
    load_sprite_frame_cache(cache, plist_file, png_file)
    frame = cache.get_sprite_frame(frame_name)
    if frame is None:
        raise AnimationError(f"Could not find frame: {frame_name}")
    sprite = Sprite(
        filename=png_file,
        content_size=Size(frame.rect.width, frame.rect.height),
        frame=frame,
        anchor_point=anchor_point,
    )
    sprite.scale = scale
    return sprite