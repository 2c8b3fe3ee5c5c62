"""Application start-up: display settings, resolution scaling and the first scene."""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from .animation import SpriteFrameCache
from .nodes import Director, Size
from .scenes import MenuScene, SceneError

WINDOW_TITLE = "CodeDemo"
GL_CONTEXT_ATTRS = (8, 8, 8, 8, 24, 8, 0)
DESIGN_RESOLUTION = Size(1280, 720)
SMALL_RESOLUTION = Size(480, 320)
MEDIUM_RESOLUTION = Size(1024, 768)
LARGE_RESOLUTION = Size(2048, 1536)
RESOLUTION_POLICY = "NO_BORDER"
ANIMATION_INTERVAL = 1.0 / 60


def content_scale_factor(frame_size: Size) -> float:
    """Scale factor for the resource set that matches the frame's height."""
    if frame_size.height > MEDIUM_RESOLUTION.height:
        target = LARGE_RESOLUTION
    elif frame_size.height > SMALL_RESOLUTION.height:
        target = MEDIUM_RESOLUTION
    else:
        target = SMALL_RESOLUTION
    return min(
        target.height / DESIGN_RESOLUTION.height,
        target.width / DESIGN_RESOLUTION.width,
    )


class AppDelegate:
    """Sets up the director and runs the menu scene."""

    def __init__(
        self,
        director: Optional[Director] = None,
        resource_dir: str = "",
        cache: Optional[SpriteFrameCache] = None,
    ) -> None:
        self.director = director or Director(visible_size=DESIGN_RESOLUTION)
        self.resource_dir = resource_dir
        self.cache = cache or SpriteFrameCache()
        self.gl_context_attrs = GL_CONTEXT_ATTRS
        self.window_title = WINDOW_TITLE
        self.frame_size: Optional[Size] = None
        self.design_resolution: Optional[Size] = None
        self.resolution_policy: Optional[str] = None

    def application_did_finish_launching(self, frame_size: Optional[Size] = None) -> bool:
        frame = frame_size or DESIGN_RESOLUTION
        self.frame_size = frame
        director = self.director
        director.display_stats = True
        director.animation_interval = ANIMATION_INTERVAL
        self.design_resolution = DESIGN_RESOLUTION
        self.resolution_policy = RESOLUTION_POLICY
        director.content_scale_factor = content_scale_factor(frame)
        director.run_with_scene(MenuScene(director, self.resource_dir, self.cache))
        return True

    def application_did_enter_background(self) -> None:
        self.director.animating = False

    def application_will_enter_foreground(self) -> None:
        self.director.animating = True


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="platformer-demo", description="Run the platformer demo.")
    parser.add_argument("--resource-dir", default=".", help="directory holding maps and images")
    parser.add_argument("--width", type=int, default=int(DESIGN_RESOLUTION.width))
    parser.add_argument("--height", type=int, default=int(DESIGN_RESOLUTION.height))
    parser.add_argument("--start", action="store_true", help="press Start Game on the menu")
    parser.add_argument("--frames", type=int, default=0, help="frames to simulate")
    args = parser.parse_args(argv)
    if args.frames < 0:
        parser.error("--frames must not be negative")

    app = AppDelegate(resource_dir=args.resource_dir)
    director = app.director
    try:
        app.application_did_finish_launching(Size(args.width, args.height))
        if args.start:
            menu = director.running_scene
            assert isinstance(menu, MenuScene)
            menu.start_game()
        for _ in range(args.frames):
            scene = director.running_scene
            if scene is None:
                break
            scene.update(director.animation_interval)
    except SceneError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"{type(director.running_scene).__name__} content scale {director.content_scale_factor:g}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())