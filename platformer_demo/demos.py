"""Two small physics demos: bodies dropped onto a ground, and two sprites meeting."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional

from .nodes import (
    Contact,
    Director,
    Node,
    PhysicsBody,
    PhysicsMaterial,
    Rect,
    Scene,
    Sprite,
    Vec2,
)
from .scenes import DEBUGDRAW_ALL, SceneError, _png_size, _title

log = logging.getLogger(__name__)

GROUND_TAG = 1
BALL_TAG = 2
CLICK_LIFT = 100
GROUND_IMAGE = "ground.png"
COIN_IMAGE = "coin.png"
BALL_MATERIAL = PhysicsMaterial(1.0, 0.3, 100.0)
BALL_IMPULSE = Vec2(0, -1000000000)
BALL_POSITION = Vec2(800, 400)
BALL_SCALE = 0.1
POLYGON_POSITION = Vec2(100, 600)
POLYGON_SCALE = 0.1
POLYGON_POINTS = (Vec2(-600, -600), Vec2(600, -600), Vec2(600, 600), Vec2(-600, 600))
COLLISION_SCALE = 0.2
MOVE_DURATION = 2.0
MOVE_DISTANCE = 600


@dataclass(frozen=True)
class MoveBy:
    """Move a node by a fixed offset over a duration."""

    duration: float
    delta: Vec2


def _sprite(path: str) -> Optional[Sprite]:
    size = _png_size(path)
    if size is None:
        return None
    return Sprite(path, content_size=size)


def create_polygon(
    filename: str,
    position: Vec2,
    scale: float,
    points: Iterable[Vec2],
    parent: Node,
) -> Sprite:
    """Add a sprite with a polygon body to the parent; it can be clicked to lift it."""
    sprite = _sprite(filename)
    if sprite is None:
        raise SceneError(f"Error while loading: {filename}")
    sprite.scale = scale
    sprite.position = position
    sprite.set_physics_body(PhysicsBody.polygon(points))
    parent.add_child(sprite)
    return sprite


def click_sprite(sprite: Node, location: Vec2) -> bool:
    """Lift the sprite if the click falls inside it; report whether it did."""
    local = sprite.convert_to_node_space(location)
    rect = Rect(0, 0, sprite.content_size.width, sprite.content_size.height)
    if not rect.contains_point(local):
        return False
    log.debug("Sprite clicked")
    sprite.position = Vec2(sprite.position.x, sprite.position.y + CLICK_LIFT)
    return True


class PhysicsDemo(Scene):
    """A static ground, a falling ball and a clickable polygon."""

    def __init__(self, director: Optional[Director] = None, resource_dir: str = "") -> None:
        super().__init__(with_physics=True)
        assert self.physics_world is not None
        self.physics_world.debug_draw_mask = DEBUGDRAW_ALL
        self.director = director or Director()
        self.resource_dir = resource_dir
        self.ground: Optional[Sprite] = None
        self.ball: Optional[Sprite] = None
        self.polygon: Optional[Sprite] = None
        self.ground_contacts = 0
        self.title = _title("Hello World", self.director)
        self.add_child(self.title, 1)
        self.add_sprites()

    def _load(self, name: str) -> Sprite:
        path = os.path.join(self.resource_dir, name)
        sprite = _sprite(path)
        if sprite is None:
            raise SceneError(f"Error while loading: {path}")
        return sprite

    def add_sprites(self) -> None:
        ground = self._load(GROUND_IMAGE)
        ground_body = PhysicsBody.box(ground.content_size)
        ground_body.dynamic = False
        ground.set_physics_body(ground_body)
        ground.anchor_point = Vec2(0, 0)
        ground.scale_x = 3
        ground.scale_y = 0.5
        ground.rotation = 0
        self.add_child(ground)

        ball = self._load(COIN_IMAGE)
        ball_body = PhysicsBody.circle(ball.content_size.width / 2, BALL_MATERIAL)
        ball_body.apply_impulse(BALL_IMPULSE)
        ball.set_physics_body(ball_body)
        ball.position = BALL_POSITION
        ball.scale = BALL_SCALE
        self.add_child(ball)

        self.polygon = create_polygon(
            os.path.join(self.resource_dir, COIN_IMAGE),
            POLYGON_POSITION,
            POLYGON_SCALE,
            POLYGON_POINTS,
            self,
        )

        ground_body.contact_test_bitmask = 1
        ground_body.tag = GROUND_TAG
        ball_body.contact_test_bitmask = 1
        ball_body.tag = BALL_TAG

        self.ground = ground
        self.ball = ball
        assert self.physics_world is not None
        self.physics_world.add_contact_listener(self.on_contact_begin)

    def on_contact_begin(self, contact: Contact) -> bool:
        tags = {contact.body_a.tag, contact.body_b.tag}
        if tags == {GROUND_TAG, BALL_TAG}:
            self.ground_contacts += 1
            log.info("Ball hit the ground!")
        return True


class CollisionDemo(Scene):
    """Two coins slide toward each other; on contact the second one is removed."""

    def __init__(self, director: Optional[Director] = None, resource_dir: str = "") -> None:
        super().__init__()
        self.director = director or Director()
        self.resource_dir = resource_dir
        self.sprite1: Optional[Sprite] = None
        self.sprite2: Optional[Sprite] = None
        self.title = _title("Hello World", self.director)
        self.add_child(self.title, 1)
        self.add_sprites()

    def add_sprites(self) -> None:
        size = self.director.visible_size
        path = os.path.join(self.resource_dir, COIN_IMAGE)
        self.sprite1 = _sprite(path)
        self.sprite2 = _sprite(path)
        if self.sprite1 is None or self.sprite2 is None:
            log.error("Error loading sprites")
            return

        self.sprite1.scale = COLLISION_SCALE
        self.sprite2.scale = COLLISION_SCALE
        self.sprite1.position = Vec2(0, size.height / 2)
        self.sprite2.position = Vec2(size.width, size.height / 2)
        self.add_child(self.sprite1)
        self.add_child(self.sprite2)
        self.sprite1.run_action(MoveBy(MOVE_DURATION, Vec2(MOVE_DISTANCE, 0)))
        self.sprite2.run_action(MoveBy(MOVE_DURATION, Vec2(-MOVE_DISTANCE, 0)))

    def on_contact_begin(self, contact: Contact) -> bool:
        node_a = contact.body_a.node
        node_b = contact.body_b.node
        self.sprite1 = node_a if isinstance(node_a, Sprite) else None
        self.sprite2 = node_b if isinstance(node_b, Sprite) else None
        if self.sprite1 is not None and self.sprite2 is not None:
            self.sprite2.remove_from_parent()
            log.info(
                "Collision detected between %s and %s", self.sprite1.name, self.sprite2.name
            )
        else:
            log.info("Collision detected, but one of the sprites is null or not a Sprite.")
        return True