"""The menu, the first level and the starter scene."""

from __future__ import annotations

import logging
import os
import struct
from typing import Optional

from .animation import AnimationError, SpriteFrameCache, create_sprite_with_frame
from .controller import Controllers
from .nodes import (
    ALL_BITS,
    ZERO,
    Director,
    Label,
    Node,
    PhysicsBody,
    PhysicsMaterial,
    Scene,
    Size,
    Sprite,
    Vec2,
    change_scene,
)
from .tilemap import TileMap, TileMapError, collision_nodes, load_tmx, spawn_position

log = logging.getLogger(__name__)

FONT = "fonts/Marker Felt.ttf"
DEBUGDRAW_ALL = 0x07
GAME_GRAVITY = Vec2(0, -980)
MAP_FILE = "Map1.tmx"
MAP_SCALE = 0.8
PLAYER_PLIST = "Idel.plist"
PLAYER_PNG = "Idel.png"
PLAYER_FRAME = "IdelRight1.png"
PLAYER_SCALE = 0.5
PLAYER_CATEGORY = 0x03
PLAYER_SHAPE = (Vec2(-60, 25), Vec2(40, 25), Vec2(40, -90), Vec2(-60, -90))
PLAYER_MATERIAL = PhysicsMaterial(0.1, 0.0, 0.7)
PLAYER_MASS = 1.0

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class SceneError(Exception):
    """Raised when a scene cannot be built."""


def _png_size(path: str) -> Optional[Size]:
    """The pixel size from a PNG header, or None if it cannot be read."""
    try:
        with open(path, "rb") as fh:
            header = fh.read(24)
    except OSError:
        return None
    if len(header) < 24 or header[:8] != _PNG_SIGNATURE or header[12:16] != b"IHDR":
        return None
    width, height = struct.unpack(">II", header[16:24])
    return Size(width, height)


def _title(text: str, director: Director, font_size: float = 24) -> Label:
    """A label centred at the top of the visible area."""
    label = Label(text, FONT, font_size, content_size=Size(len(text) * font_size / 2, font_size))
    size, origin = director.visible_size, director.visible_origin
    label.position = Vec2(
        origin.x + size.width / 2,
        origin.y + size.height - label.content_size.height,
    )
    return label


class MenuScene(Scene):
    """Title screen with a button that starts the first level."""

    def __init__(
        self,
        director: Optional[Director] = None,
        resource_dir: str = "",
        cache: Optional[SpriteFrameCache] = None,
    ) -> None:
        super().__init__()
        self.director = director or Director()
        self.resource_dir = resource_dir
        self.cache = cache or SpriteFrameCache()
        self.title = _title("Scene Menu", self.director)
        self.add_child(self.title, 1)

        size, origin = self.director.visible_size, self.director.visible_origin
        self.start_item = Label(
            "Start Game",
            FONT,
            36,
            content_size=Size(len("Start Game") * 18, 36),
            position=Vec2(origin.x + size.width / 2, origin.y + size.height / 2),
        )
        self.menu = Node(position=ZERO, name="menu")
        self.menu.add_child(self.start_item)
        self.add_child(self.menu)

    def start_game(self) -> "GameScene":
        """Build the first level and slide it in."""
        scene = GameScene(self.director, self.resource_dir, self.cache)
        change_scene(self.director, scene)
        return scene


class GameScene(Scene):
    """The first level: a tile map with static collision tiles and a player."""

    def __init__(
        self,
        director: Optional[Director] = None,
        resource_dir: str = "",
        cache: Optional[SpriteFrameCache] = None,
    ) -> None:
        super().__init__(with_physics=True)
        assert self.physics_world is not None
        self.physics_world.debug_draw_mask = DEBUGDRAW_ALL
        self.physics_world.gravity = GAME_GRAVITY
        self.director = director or Director()
        self.resource_dir = resource_dir
        self.tile_map: Optional[TileMap] = None
        self.player: Optional[Node] = None
        self.controller: Optional[Controllers] = None

        self.title = _title("Map1", self.director)
        self.add_child(self.title, 1)

        self.load_tile_map(os.path.join(resource_dir, MAP_FILE))
        self.create_player(cache or SpriteFrameCache())

    def load_tile_map(self, path: str) -> TileMap:
        """Load the map, add it and a static body node for each solid tile."""
        try:
            tile_map = load_tmx(path)
        except TileMapError as exc:
            raise SceneError(f"Failed to load tile map: {exc}") from exc
        tile_map.scale = MAP_SCALE
        self.add_child(tile_map)
        self.tile_map = tile_map
        try:
            nodes = collision_nodes(tile_map)
        except TileMapError as exc:
            raise SceneError(f"Failed to load tile map: {exc}") from exc
        for node in nodes:
            self.add_child(node)
        return tile_map

    def create_player(self, cache: SpriteFrameCache) -> Node:
        """Place the player at the map's spawn point with its body and controller."""
        if self.tile_map is None:
            raise SceneError("no tile map loaded")
        spawn = spawn_position(self.tile_map)

        try:
            player: Sprite = create_sprite_with_frame(
                cache,
                os.path.join(self.resource_dir, PLAYER_PLIST),
                os.path.join(self.resource_dir, PLAYER_PNG),
                PLAYER_FRAME,
                PLAYER_SCALE,
                Vec2(0.5, 0.5),
            )
        except AnimationError as exc:
            log.error("Failed to create player sprite, using a blank one: %s", exc)
            player = Sprite()

        body = PhysicsBody.polygon(PLAYER_SHAPE, PLAYER_MATERIAL)
        body.dynamic = True
        body.rotation_enabled = False
        body.category_bitmask = PLAYER_CATEGORY
        body.collision_bitmask = ALL_BITS
        body.contact_test_bitmask = ALL_BITS
        body.mass = PLAYER_MASS

        player.set_physics_body(body)
        player.position = spawn
        self.add_child(player)
        self.player = player

        controller = Controllers(self.resource_dir)
        controller.set_player(player)
        self.add_child(controller)
        self.controller = controller
        return player


class HelloWorldScene(Scene):
    """Starter scene with a close button, a title and a splash image."""

    def __init__(self, director: Optional[Director] = None, resource_dir: str = "") -> None:
        super().__init__()
        self.director = director or Director()
        self.resource_dir = resource_dir
        self.problems: list[str] = []
        size, origin = self.director.visible_size, self.director.visible_origin

        close_size = _png_size(os.path.join(resource_dir, "CloseNormal.png"))
        self.close_item = Sprite("CloseNormal.png", content_size=close_size or Size())
        if close_size is None or close_size.width <= 0 or close_size.height <= 0:
            self._problem_loading("'CloseNormal.png' and 'CloseSelected.png'")
        else:
            self.close_item.position = Vec2(
                origin.x + size.width - close_size.width / 2,
                origin.y + close_size.height / 2,
            )
        self.menu = Node(position=ZERO, name="menu")
        self.menu.add_child(self.close_item)
        self.add_child(self.menu, 1)

        self.title = _title("Hello World", self.director)
        self.add_child(self.title, 1)

        self.splash: Optional[Sprite] = None
        splash_size = _png_size(os.path.join(resource_dir, "HelloWorld.png"))
        if splash_size is None:
            self._problem_loading("'HelloWorld.png'")
        else:
            self.splash = Sprite(
                "HelloWorld.png",
                content_size=splash_size,
                position=Vec2(size.width / 2 + origin.x, size.height / 2 + origin.y),
            )
            self.add_child(self.splash, 0)

    def _problem_loading(self, filename: str) -> None:
        self.problems.append(filename)
        log.error("Error while loading: %s", filename)

    def close(self) -> None:
        """Quit: end the director."""
        self.director.end()