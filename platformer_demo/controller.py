"""Keyboard-driven player movement and animation selection."""

from __future__ import annotations

import logging
import os
from enum import Enum, auto
from typing import Optional

from .animation import (
    Animate,
    AnimationError,
    SpriteFrameCache,
    create_animate_action,
    create_animation,
)
from .nodes import Key, Node, PhysicsBody, Sprite, Vec2

log = logging.getLogger(__name__)

LEFT_KEYS = frozenset({Key.A, Key.LEFT_ARROW})
RIGHT_KEYS = frozenset({Key.D, Key.RIGHT_ARROW})
JUMP_KEYS = frozenset({Key.SPACE, Key.W, Key.UP_ARROW})

ANIMATION_PLIST = "player.plist"
ANIMATION_PNG = "player.png"
ANIMATION_FRAME_COUNT = 6
ANIMATION_FRAME_DELAY = 0.1


class MotionState(Enum):
    IDLE_RIGHT = auto()
    IDLE_LEFT = auto()
    RUN_RIGHT = auto()
    RUN_LEFT = auto()
    JUMP_RIGHT = auto()
    JUMP_LEFT = auto()
    DASH_RIGHT = auto()
    DASH_LEFT = auto()


_ANIMATIONS: dict[MotionState, tuple[str, bool]] = {
    MotionState.IDLE_RIGHT: ("IdelRight1", True),
    MotionState.IDLE_LEFT: ("idle_left", True),
    MotionState.RUN_RIGHT: ("run_right", True),
    MotionState.RUN_LEFT: ("run_left", True),
    MotionState.JUMP_RIGHT: ("jump_right", False),
    MotionState.JUMP_LEFT: ("jump_left", False),
    MotionState.DASH_RIGHT: ("dash_right", False),
    MotionState.DASH_LEFT: ("dash_left", False),
}


class Controllers(Node):
    """Moves a player node from keyboard input: run, jump and timed dash."""

    SPEED_RUN = 200.0
    SPEED_JUMP = 400.0
    SPEED_DASH = 800.0
    DASH_DURATION = 0.2

    def __init__(self, resource_dir: str = "") -> None:
        super().__init__()
        self.resource_dir = resource_dir
        self.player: Optional[Node] = None
        self.state = MotionState.IDLE_RIGHT
        self.last_state = MotionState.JUMP_RIGHT
        self.left_pressed = False
        self.right_pressed = False
        self.jump_pressed = False
        self.shift_pressed = False
        self.dashing = False
        self.dash_timer = 0.0
        self.dash_direction = 1.0
        self.scheduled = True

    def set_player(self, player: Optional[Node]) -> None:
        self.player = player

    def _body(self) -> Optional[PhysicsBody]:
        return None if self.player is None else self.player.physics_body

    def _set_velocity(self, x: Optional[float] = None, y: Optional[float] = None) -> None:
        body = self._body()
        if body is None:
            return
        v = body.velocity
        body.velocity = Vec2(v.x if x is None else x, v.y if y is None else y)

    def on_key_pressed(self, key: Key) -> None:
        if key in LEFT_KEYS:
            self.state = MotionState.RUN_LEFT
            self.left_pressed = True
        elif key in RIGHT_KEYS:
            self.state = MotionState.RUN_RIGHT
            self.right_pressed = True
        elif key in JUMP_KEYS:
            if not self.jump_pressed:
                self.jump_pressed = True
                self.state = MotionState.JUMP_LEFT if self.left_pressed else MotionState.JUMP_RIGHT
                self._jump()
        elif key is Key.SHIFT:
            if not self.shift_pressed:
                self.shift_pressed = True
                self.state = MotionState.DASH_LEFT if self.left_pressed else MotionState.DASH_RIGHT
                self._dash()

    def on_key_released(self, key: Key) -> None:
        if key in LEFT_KEYS:
            self.state = MotionState.IDLE_LEFT
            self.left_pressed = False
        elif key in RIGHT_KEYS:
            self.state = MotionState.IDLE_RIGHT
            self.right_pressed = False
        elif key in JUMP_KEYS:
            self.jump_pressed = False
        elif key is Key.SHIFT:
            self.state = MotionState.IDLE_LEFT if self.left_pressed else MotionState.IDLE_RIGHT
            self.shift_pressed = False

    def _jump(self) -> None:
        if self._body() is None:
            return
        self._set_velocity(y=self.SPEED_JUMP)
        log.debug("Player jumped!")

    def _dash(self) -> None:
        body = self._body()
        if body is None:
            return
        self.dash_direction = -1.0 if self.left_pressed else 1.0
        self.dashing = True
        self.dash_timer = self.DASH_DURATION
        self._set_velocity(x=self.SPEED_DASH * self.dash_direction)
        log.debug("Player dashed! Direction: %f, Velocity: %s", self.dash_direction, body.velocity)

    def _update_dash(self, dt: float) -> None:
        if not self.dashing:
            return
        self.dash_timer -= dt
        if self.dash_timer <= 0.0:
            self.dashing = False
            self.dash_timer = 0.0
            log.debug("Dash ended")

    def update(self, dt: float) -> None:
        if self.player is None:
            return
        self._update_dash(dt)
        if self.dashing:
            return
        if self.left_pressed and not self.right_pressed:
            self._set_velocity(x=-self.SPEED_RUN)
        elif self.right_pressed and not self.left_pressed:
            self._set_velocity(x=self.SPEED_RUN)
        elif not self.left_pressed and not self.right_pressed:
            self._set_velocity(x=0.0)

    def animation_for_state(self, state: MotionState) -> tuple[str, bool]:
        """The animation name for a state and whether it loops."""
        return _ANIMATIONS[state]

    def change_animation_by_state(self, cache: SpriteFrameCache) -> Optional[Animate]:
        """Start the animation for the current state if the state changed."""
        if self.state == self.last_state:
            return None
        self.last_state = self.state
        if not isinstance(self.player, Sprite):
            log.error("Player is not a Sprite")
            return None
        name, loop = self.animation_for_state(self.state)
        try:
            animation = create_animation(
                cache,
                os.path.join(self.resource_dir, ANIMATION_PLIST),
                os.path.join(self.resource_dir, ANIMATION_PNG),
                1.0,
                Vec2(0.5, 0.5),
                ANIMATION_FRAME_COUNT,
                name,
                ANIMATION_FRAME_DELAY,
                loop,
            )
            animate = create_animate_action(animation)
        except AnimationError as exc:
            log.warning("Cannot start animation %s: %s", name, exc)
            return None
        self.player.stop_all_actions()
        self.player.run_action(animate)
        return animate