import plistlib

import pytest

from platformer_demo.animation import Animate, SpriteFrameCache
from platformer_demo.controller import Controllers, MotionState
from platformer_demo.nodes import Key, Node, PhysicsBody, Size, Sprite, Vec2


def make_controller(resource_dir=""):
    player = Sprite(content_size=Size(32, 32))
    player.set_physics_body(PhysicsBody.box(Size(32, 32)))
    controller = Controllers(resource_dir=resource_dir)
    controller.set_player(player)
    return controller, player


def write_atlas(directory, names):
    frames = {name: {"frame": "{{0,0},{32,32}}", "rotated": False} for name in names}
    with open(directory / "player.plist", "wb") as fh:
        plistlib.dump({"frames": frames}, fh)
    (directory / "player.png").write_bytes(b"")


def test_initial_states():
    controller, _ = make_controller()
    assert controller.state is MotionState.IDLE_RIGHT
    assert controller.last_state is MotionState.JUMP_RIGHT
    assert controller.scheduled is True


@pytest.mark.parametrize("key", [Key.D, Key.RIGHT_ARROW])
def test_run_right(key):
    controller, player = make_controller()
    controller.on_key_pressed(key)
    controller.update(0.016)
    assert controller.state is MotionState.RUN_RIGHT
    assert player.physics_body.velocity.x == Controllers.SPEED_RUN


@pytest.mark.parametrize("key", [Key.A, Key.LEFT_ARROW])
def test_run_left(key):
    controller, player = make_controller()
    controller.on_key_pressed(key)
    controller.update(0.016)
    assert controller.state is MotionState.RUN_LEFT
    assert player.physics_body.velocity.x == -Controllers.SPEED_RUN


def test_both_directions_keep_velocity():
    controller, player = make_controller()
    controller.on_key_pressed(Key.D)
    controller.update(0.016)
    controller.on_key_pressed(Key.A)
    controller.update(0.016)
    assert player.physics_body.velocity.x == Controllers.SPEED_RUN


def test_release_stops_and_sets_idle():
    controller, player = make_controller()
    controller.on_key_pressed(Key.A)
    controller.update(0.016)
    controller.on_key_released(Key.A)
    controller.update(0.016)
    assert controller.state is MotionState.IDLE_LEFT
    assert player.physics_body.velocity.x == 0.0
    controller.on_key_pressed(Key.D)
    controller.on_key_released(Key.D)
    assert controller.state is MotionState.IDLE_RIGHT


def test_jump_only_on_fresh_press():
    controller, player = make_controller()
    controller.on_key_pressed(Key.SPACE)
    assert player.physics_body.velocity.y == Controllers.SPEED_JUMP
    assert controller.state is MotionState.JUMP_RIGHT
    player.physics_body.velocity = Vec2(0.0, 0.0)
    controller.on_key_pressed(Key.W)
    assert player.physics_body.velocity.y == 0.0
    controller.on_key_released(Key.W)
    controller.on_key_pressed(Key.UP_ARROW)
    assert player.physics_body.velocity.y == Controllers.SPEED_JUMP


def test_jump_left_state():
    controller, _ = make_controller()
    controller.on_key_pressed(Key.A)
    controller.on_key_pressed(Key.SPACE)
    assert controller.state is MotionState.JUMP_LEFT


def test_dash_overrides_movement_until_it_ends():
    controller, player = make_controller()
    controller.on_key_pressed(Key.A)
    controller.on_key_pressed(Key.SHIFT)
    assert controller.state is MotionState.DASH_LEFT
    assert controller.dash_direction == -1.0
    assert player.physics_body.velocity.x == -Controllers.SPEED_DASH
    controller.on_key_released(Key.A)
    controller.update(0.05)
    assert controller.dashing is True
    assert player.physics_body.velocity.x == -Controllers.SPEED_DASH
    controller.update(Controllers.DASH_DURATION)
    assert controller.dashing is False
    assert controller.dash_timer == 0.0
    assert player.physics_body.velocity.x == 0.0


def test_dash_defaults_right_and_needs_fresh_shift():
    controller, player = make_controller()
    controller.on_key_pressed(Key.SHIFT)
    assert controller.state is MotionState.DASH_RIGHT
    assert player.physics_body.velocity.x == Controllers.SPEED_DASH
    player.physics_body.velocity = Vec2(0.0, 0.0)
    controller.on_key_pressed(Key.SHIFT)
    assert player.physics_body.velocity.x == 0.0
    controller.on_key_released(Key.SHIFT)
    assert controller.state is MotionState.IDLE_RIGHT
    assert controller.shift_pressed is False


def test_without_player_keys_still_track_state():
    controller = Controllers()
    controller.on_key_pressed(Key.SHIFT)
    controller.update(0.1)
    assert controller.state is MotionState.DASH_RIGHT
    assert controller.dashing is False


def test_animation_for_state():
    controller = Controllers()
    assert controller.animation_for_state(MotionState.IDLE_RIGHT) == ("IdelRight1", True)
    assert controller.animation_for_state(MotionState.RUN_LEFT) == ("run_left", True)
    assert controller.animation_for_state(MotionState.JUMP_LEFT) == ("jump_left", False)
    assert controller.animation_for_state(MotionState.DASH_RIGHT) == ("dash_right", False)


def test_change_animation_runs_on_player(tmp_path):
    write_atlas(tmp_path, [f"run_right_{i}.png" for i in range(6)])
    controller, player = make_controller(str(tmp_path))
    controller.on_key_pressed(Key.D)
    animate = controller.change_animation_by_state(SpriteFrameCache())
    assert isinstance(animate, Animate)
    assert [f.name for f in animate.animation.frames] == [f"run_right_{i}.png" for i in range(6)]
    assert animate.animation.loops == -1
    assert player.actions == [animate]
    assert controller.last_state is MotionState.RUN_RIGHT
    assert controller.change_animation_by_state(SpriteFrameCache()) is None


def test_change_animation_non_looping(tmp_path):
    write_atlas(tmp_path, ["jump_right1.png"])
    controller, _ = make_controller(str(tmp_path))
    controller.state = MotionState.JUMP_LEFT
    controller.last_state = MotionState.IDLE_RIGHT
    write_atlas(tmp_path, ["jump_left_0.png"])
    animate = controller.change_animation_by_state(SpriteFrameCache())
    assert animate.animation.loops == 1


def test_change_animation_missing_files(tmp_path):
    controller, player = make_controller(str(tmp_path))
    assert controller.change_animation_by_state(SpriteFrameCache()) is None
    assert player.actions == []
    assert controller.last_state is MotionState.IDLE_RIGHT


def test_change_animation_requires_sprite(tmp_path):
    write_atlas(tmp_path, ["IdelRight1_0.png"])
    controller = Controllers(resource_dir=str(tmp_path))
    controller.set_player(Node())
    assert controller.change_animation_by_state(SpriteFrameCache()) is None