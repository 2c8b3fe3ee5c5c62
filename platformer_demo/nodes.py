"""Scene graph, simple 2D physics and scene management."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Iterator, Optional


@dataclass(frozen=True)
class Vec2:
    """An immutable 2D vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Vec2":
        return Vec2(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def distance(self, other: "Vec2") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


ZERO = Vec2(0.0, 0.0)


@dataclass(frozen=True)
class Size:
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle given by its lower-left corner and size."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def contains_point(self, point: Vec2) -> bool:
        return self.min_x <= point.x <= self.max_x and self.min_y <= point.y <= self.max_y

    def intersects(self, other: "Rect") -> bool:
        return not (
            self.max_x < other.min_x
            or other.max_x < self.min_x
            or self.max_y < other.min_y
            or other.max_y < self.min_y
        )


class Key(Enum):
    A = auto()
    D = auto()
    W = auto()
    LEFT_ARROW = auto()
    RIGHT_ARROW = auto()
    UP_ARROW = auto()
    SPACE = auto()
    SHIFT = auto()


@dataclass(frozen=True)
class PhysicsMaterial:
    density: float = 0.1
    restitution: float = 0.5
    friction: float = 0.5


ALL_BITS = 0xFFFFFFFF


class ShapeKind(Enum):
    BOX = auto()
    CIRCLE = auto()
    POLYGON = auto()


class PhysicsBody:
    """A rigid body whose shape is defined in its node's local space."""

    def __init__(
        self,
        kind: ShapeKind,
        points: list[Vec2],
        radius: float = 0.0,
        material: Optional[PhysicsMaterial] = None,
    ) -> None:
        self.kind = kind
        self.points = list(points)
        self.radius = radius
        self.material = material or PhysicsMaterial()
        self.dynamic = True
        self.rotation_enabled = True
        self.category_bitmask = ALL_BITS
        self.collision_bitmask = ALL_BITS
        self.contact_test_bitmask = 0
        self.tag = 0
        self.velocity = ZERO
        self.node: Optional[Node] = None
        self.mass = max(self.area * self.material.density, 1e-6)

    @classmethod
    def box(cls, size: Size, material: Optional[PhysicsMaterial] = None) -> "PhysicsBody":
        hw, hh = size.width / 2, size.height / 2
        points = [Vec2(-hw, -hh), Vec2(hw, -hh), Vec2(hw, hh), Vec2(-hw, hh)]
        return cls(ShapeKind.BOX, points, material=material)

    @classmethod
    def circle(cls, radius: float, material: Optional[PhysicsMaterial] = None) -> "PhysicsBody":
        if radius <= 0:
            raise ValueError("circle radius must be positive")
        return cls(ShapeKind.CIRCLE, [], radius=radius, material=material)

    @classmethod
    def polygon(cls, points, material: Optional[PhysicsMaterial] = None) -> "PhysicsBody":
        points = list(points)
        if len(points) < 3:
            raise ValueError("a polygon needs at least three points")
        return cls(ShapeKind.POLYGON, points, material=material)

    @property
    def area(self) -> float:
        if self.kind is ShapeKind.CIRCLE:
            return math.pi * self.radius * self.radius
        pairs = zip(self.points, self.points[1:] + self.points[:1])
        return abs(sum(a.x * b.y - b.x * a.y for a, b in pairs)) / 2

    def apply_impulse(self, impulse: Vec2) -> None:
        self.velocity = self.velocity + impulse * (1.0 / self.mass)

    def bounds(self) -> Rect:
        """The body's axis-aligned bounds in world space."""
        if self.node is None:
            origin, sx, sy = ZERO, 1.0, 1.0
        else:
            origin, sx, sy = self.node.position, self.node.scale_x, self.node.scale_y
        if self.kind is ShapeKind.CIRCLE:
            rx, ry = self.radius * abs(sx), self.radius * abs(sy)
            return Rect(origin.x - rx, origin.y - ry, 2 * rx, 2 * ry)
        xs = [origin.x + p.x * sx for p in self.points]
        ys = [origin.y + p.y * sy for p in self.points]
        return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


@dataclass
class Contact:
    body_a: PhysicsBody
    body_b: PhysicsBody
    points: list[Vec2] = field(default_factory=list)


@dataclass(frozen=True)
class RayCastInfo:
    body: PhysicsBody
    point: Vec2
    fraction: float


class Node:
    """A scene graph node."""

    def __init__(
        self,
        position: Vec2 = ZERO,
        content_size: Size = Size(),
        anchor_point: Vec2 = Vec2(0.5, 0.5),
        name: str = "",
    ) -> None:
        self.position = position
        self.content_size = content_size
        self.anchor_point = anchor_point
        self.name = name
        self.scale_x = 1.0
        self.scale_y = 1.0
        self.rotation = 0.0
        self.tag = 0
        self.z_order = 0
        self.children: list[Node] = []
        self.parent: Optional[Node] = None
        self.physics_body: Optional[PhysicsBody] = None
        self.scheduled = False
        self.actions: list[object] = []

    @property
    def scale(self) -> float:
        return self.scale_x

    @scale.setter
    def scale(self, value: float) -> None:
        self.scale_x = self.scale_y = value

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def add_child(self, child: "Node", z_order: int = 0) -> None:
        if child.parent is not None:
            raise ValueError("node already has a parent")
        child.parent = self
        child.z_order = z_order
        self.children.append(child)
        world = _world_of(self)
        if world is not None:
            for node in child.walk():
                if node.physics_body is not None:
                    world.add_body(node.physics_body)

    def remove_from_parent(self) -> None:
        if self.parent is None:
            return
        world = _world_of(self)
        if world is not None:
            for node in self.walk():
                if node.physics_body is not None:
                    world.remove_body(node.physics_body)
        self.parent.children.remove(self)
        self.parent = None

    def set_physics_body(self, body: Optional[PhysicsBody]) -> None:
        world = _world_of(self)
        if self.physics_body is not None:
            if world is not None:
                world.remove_body(self.physics_body)
            self.physics_body.node = None
        self.physics_body = body
        if body is not None:
            body.node = self
            if world is not None:
                world.add_body(body)

    def convert_to_node_space(self, point: Vec2) -> Vec2:
        rel = point - self.position
        return Vec2(
            rel.x / self.scale_x + self.anchor_point.x * self.content_size.width,
            rel.y / self.scale_y + self.anchor_point.y * self.content_size.height,
        )

    def bounding_box(self) -> Rect:
        w = self.content_size.width * self.scale_x
        h = self.content_size.height * self.scale_y
        return Rect(
            self.position.x - self.anchor_point.x * w,
            self.position.y - self.anchor_point.y * h,
            w,
            h,
        )

    def scene(self) -> Optional["Scene"]:
        node: Optional[Node] = self
        while node is not None:
            if isinstance(node, Scene):
                return node
            node = node.parent
        return None

    def run_action(self, action: object) -> None:
        self.actions.append(action)

    def stop_all_actions(self) -> None:
        self.actions.clear()

    def update(self, dt: float) -> None:
        """Per-frame hook for scheduled nodes."""


def _world_of(node: Node) -> Optional["PhysicsWorld"]:
    scene = node.scene()
    return scene.physics_world if scene is not None else None


class Sprite(Node):
    def __init__(self, filename: str = "", content_size: Size = Size(), frame=None, **kwargs) -> None:
        super().__init__(content_size=content_size, **kwargs)
        self.filename = filename
        self.frame = frame


class Label(Node):
    def __init__(self, text: str, font: str = "fonts/Marker Felt.ttf", font_size: float = 24, **kwargs) -> None:
        super().__init__(**kwargs)
        self.text = text
        self.font = font
        self.font_size = font_size


ContactBegin = Callable[[Contact], bool]
ContactSeparate = Callable[[Contact], None]


class PhysicsWorld:
    """Bodies, gravity and contact notification."""

    def __init__(self, gravity: Vec2 = Vec2(0.0, -98.0)) -> None:
        self.gravity = gravity
        self.debug_draw_mask = 0
        self.bodies: list[PhysicsBody] = []
        self._listeners: list[tuple[Optional[ContactBegin], Optional[ContactSeparate]]] = []
        self._touching: dict[tuple[int, int], Contact] = {}

    def add_body(self, body: PhysicsBody) -> None:
        if body not in self.bodies:
            self.bodies.append(body)

    def remove_body(self, body: PhysicsBody) -> None:
        if body in self.bodies:
            self.bodies.remove(body)
        for key in [k for k, c in self._touching.items() if body in (c.body_a, c.body_b)]:
            del self._touching[key]

    def add_contact_listener(self, on_begin: Optional[ContactBegin] = None, on_separate: Optional[ContactSeparate] = None) -> None:
        self._listeners.append((on_begin, on_separate))

    def ray_cast(self, callback: Callable[["PhysicsWorld", RayCastInfo], bool], start: Vec2, end: Vec2) -> None:
        """Report hits along the segment in order; stop when the callback returns False."""
        hits = []
        for body in self.bodies:
            t = _segment_hits_rect(start, end, body.bounds())
            if t is not None:
                hits.append(RayCastInfo(body, start + (end - start) * t, t))
        for info in sorted(hits, key=lambda h: h.fraction):
            if not callback(self, info):
                break

    def step(self, dt: float) -> None:
        for body in self.bodies:
            if body.dynamic and body.node is not None:
                body.velocity = body.velocity + self.gravity * dt
                body.node.position = body.node.position + body.velocity * dt
        self._resolve()
        self._detect_contacts()

    def _resolve(self) -> None:
        for a in self.bodies:
            if not a.dynamic or a.node is None:
                continue
            for b in self.bodies:
                if b is a or b.dynamic:
                    continue
                if not (a.collision_bitmask & b.category_bitmask and b.collision_bitmask & a.category_bitmask):
                    continue
                ra, rb = a.bounds(), b.bounds()
                if not ra.intersects(rb):
                    continue
                dx = min(ra.max_x - rb.min_x, rb.max_x - ra.min_x)
                dy = min(ra.max_y - rb.min_y, rb.max_y - ra.min_y)
                pos = a.node.position
                if dy <= dx:
                    sign = 1 if ra.min_y + ra.height / 2 >= rb.min_y + rb.height / 2 else -1
                    a.node.position = Vec2(pos.x, pos.y + sign * dy)
                    a.velocity = Vec2(a.velocity.x, 0.0)
                else:
                    sign = 1 if ra.min_x + ra.width / 2 >= rb.min_x + rb.width / 2 else -1
                    a.node.position = Vec2(pos.x + sign * dx, pos.y)
                    a.velocity = Vec2(0.0, a.velocity.y)

    def _detect_contacts(self) -> None:
        current: dict[tuple[int, int], Contact] = {}
        for i, a in enumerate(self.bodies):
            for b in self.bodies[i + 1:]:
                if not (a.category_bitmask & b.contact_test_bitmask or b.category_bitmask & a.contact_test_bitmask):
                    continue
                ra, rb = a.bounds(), b.bounds()
                if ra.intersects(rb):
                    cx = (max(ra.min_x, rb.min_x) + min(ra.max_x, rb.max_x)) / 2
                    cy = (max(ra.min_y, rb.min_y) + min(ra.max_y, rb.max_y)) / 2
                    current[(id(a), id(b))] = Contact(a, b, [Vec2(cx, cy)])
        for key, contact in current.items():
            if key not in self._touching:
                for on_begin, _ in list(self._listeners):
                    if on_begin is not None:
                        on_begin(contact)
        for key, contact in list(self._touching.items()):
            if key not in current:
                for _, on_separate in list(self._listeners):
                    if on_separate is not None:
                        on_separate(contact)
        self._touching = current


def _segment_hits_rect(start: Vec2, end: Vec2, rect: Rect) -> Optional[float]:
    t_min, t_max = 0.0, 1.0
    for s, d, lo, hi in (
        (start.x, end.x - start.x, rect.min_x, rect.max_x),
        (start.y, end.y - start.y, rect.min_y, rect.max_y),
    ):
        if d == 0:
            if s < lo or s > hi:
                return None
            continue
        t1, t2 = (lo - s) / d, (hi - s) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_min, t_max = max(t_min, t1), min(t_max, t2)
        if t_min > t_max:
            return None
    return t_min


class Scene(Node):
    """Root node of a scene, optionally owning a physics world."""

    def __init__(self, with_physics: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.physics_world: Optional[PhysicsWorld] = PhysicsWorld() if with_physics else None

    def update(self, dt: float) -> None:
        if self.physics_world is not None:
            self.physics_world.step(dt)
        for node in list(self.walk()):
            if node is not self and node.scheduled:
                node.update(dt)


@dataclass
class Transition:
    duration: float
    scene: Scene


class Director:
    """Owns the running scene and display settings."""

    def __init__(self, visible_size: Size = Size(1280, 720), visible_origin: Vec2 = ZERO) -> None:
        self.visible_size = visible_size
        self.visible_origin = visible_origin
        self.running_scene: Optional[Scene] = None
        self.last_transition: Optional[Transition] = None
        self.animation_interval = 1.0 / 60
        self.display_stats = False
        self.content_scale_factor = 1.0
        self.animating = True
        self.ended = False

    def run_with_scene(self, scene: Scene) -> None:
        if self.running_scene is not None:
            raise RuntimeError("a scene is already running")
        self.running_scene = scene

    def replace_scene(self, scene: Scene, transition_duration: float = 0.0) -> None:
        self.last_transition = Transition(transition_duration, scene) if transition_duration > 0 else None
        self.running_scene = scene

    def end(self) -> None:
        self.ended = True
        self.running_scene = None


def change_scene(director: Director, scene: Scene) -> None:
    """Replace the running scene with a half-second slide-in transition."""
    director.replace_scene(scene, 0.5)