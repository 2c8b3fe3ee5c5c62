import pytest

from platformer_demo.nodes import (
    Director,
    Node,
    PhysicsBody,
    PhysicsMaterial,
    Rect,
    Scene,
    Size,
    Sprite,
    Vec2,
    change_scene,
)


def test_vec2_arithmetic_round_trip():
    a, b = Vec2(3, 4), Vec2(-1, 2)
    assert (a + b) - b == a
    assert Vec2(0, 0).distance(a) == 5


def test_rect_contains_and_intersects():
    r = Rect(0, 0, 10, 10)
    assert r.contains_point(Vec2(10, 10))
    assert not r.contains_point(Vec2(11, 5))
    assert r.intersects(Rect(5, 5, 10, 10))
    assert not r.intersects(Rect(20, 20, 1, 1))


def test_box_bounds_follow_node():
    node = Node(position=Vec2(100, 50))
    node.set_physics_body(PhysicsBody.box(Size(20, 10)))
    assert node.physics_body.bounds() == Rect(90, 45, 20, 10)


def test_polygon_needs_three_points():
    with pytest.raises(ValueError):
        PhysicsBody.polygon([Vec2(0, 0), Vec2(1, 1)])


def test_circle_rejects_non_positive_radius():
    with pytest.raises(ValueError):
        PhysicsBody.circle(0)


def test_apply_impulse_scales_by_mass():
    body = PhysicsBody.box(Size(10, 10), PhysicsMaterial(density=1.0))
    body.apply_impulse(Vec2(0, -200))
    assert body.velocity == Vec2(0, -200 / body.mass)


def test_convert_to_node_space_inverts_position():
    sprite = Sprite(content_size=Size(40, 40), position=Vec2(100, 100))
    assert sprite.convert_to_node_space(Vec2(100, 100)) == Vec2(20, 20)
    assert sprite.bounding_box().contains_point(Vec2(100, 100))


def test_scene_registers_and_removes_bodies():
    scene = Scene(with_physics=True)
    child = Node()
    child.set_physics_body(PhysicsBody.box(Size(1, 1)))
    scene.add_child(child)
    assert child.scene() is scene
    assert scene.physics_world.bodies == [child.physics_body]
    child.remove_from_parent()
    assert scene.physics_world.bodies == []


def test_gravity_moves_dynamic_body_only():
    scene = Scene(with_physics=True)
    dyn, static = Node(position=Vec2(0, 100)), Node(position=Vec2(500, 100))
    dyn.set_physics_body(PhysicsBody.box(Size(1, 1)))
    body = PhysicsBody.box(Size(1, 1))
    body.dynamic = False
    static.set_physics_body(body)
    scene.add_child(dyn)
    scene.add_child(static)
    scene.update(0.1)
    assert dyn.position.y < 100
    assert static.position == Vec2(500, 100)


def test_contact_begin_and_separate():
    scene = Scene(with_physics=True)
    events = []
    scene.physics_world.add_contact_listener(lambda c: events.append("begin") or True, lambda c: events.append("end"))
    a, b = Node(position=Vec2(0, 0)), Node(position=Vec2(5, 0))
    for n in (a, b):
        body = PhysicsBody.box(Size(10, 10))
        body.dynamic = False
        body.contact_test_bitmask = 0xFFFFFFFF
        n.set_physics_body(body)
        scene.add_child(n)
    scene.update(0.016)
    scene.update(0.016)
    assert events == ["begin"]
    b.position = Vec2(100, 0)
    scene.update(0.016)
    assert events == ["begin", "end"]


def test_ray_cast_orders_hits_and_stops():
    scene = Scene(with_physics=True)
    near, far = Node(position=Vec2(0, -5)), Node(position=Vec2(0, -12))
    for n in (far, near):
        n.set_physics_body(PhysicsBody.box(Size(2, 2)))
        scene.add_child(n)
    hits = []
    scene.physics_world.ray_cast(lambda w, info: hits.append(info.body) and False, Vec2(0, 0), Vec2(0, -15))
    assert hits == [near.physics_body]


def test_change_scene_uses_transition():
    director = Director()
    first, second = Scene(), Scene()
    director.run_with_scene(first)
    change_scene(director, second)
    assert director.running_scene is second
    assert director.last_transition.duration == 0.5
    director.end()
    assert director.ended and director.running_scene is None