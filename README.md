# platformer_demo

A small, dependency-free, headless model of a 2D side-scrolling platformer. It has a
scene graph of nodes, sprites and labels. It has a simple physics world that uses
axis-aligned bounds, gravity, contact listeners and ray casts. It also reads TMX tile
maps, builds sprite-frame animations, and has a keyboard-driven player controller that
can run, jump and make a timed dash.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running

```
platformer-demo [--resource-dir DIR] [--width W] [--height H] [--start] [--frames N]
```

The command starts `AppDelegate` and sets the content scale factor for the given frame
size, which defaults to 1280x720. It then runs the menu scene. With `--start` it presses
"Start Game", which builds the first level from `Map1.tmx` and the `Idel.plist` and
`Idel.png` atlas in the resource directory. With `--frames N` it steps the running
scene N times at 1/60 s per step. At the end it prints the running scene's class and the
content scale factor, for example `MenuScene content scale 0.8`. If a scene cannot be
built, for instance because the map is missing, it prints an error and exits with
status 1.

## Library overview

- `platformer_demo.nodes`
  - Geometry: `Vec2`, `Size` and `Rect`, with `contains_point` and `intersects`.
  - Input: the `Key` enum.
  - Physics: `PhysicsMaterial` and `PhysicsBody`, built with `box`, `circle` and
    `polygon`, plus `apply_impulse` and `bounds`. `PhysicsWorld` provides `add_body`,
    `remove_body`, `add_contact_listener`, `ray_cast` and `step`.
  - Scene graph: `Node`, `Sprite`, `Label`, `Scene` and `Director`.
  - `change_scene(director, scene)` replaces the scene with a 0.5 s transition.
- `platformer_demo.animation`
  - `SpriteFrameCache` loads frames from plist atlases.
  - `create_animation` tries the names from `frame_name_candidates`.
  - Also `create_animation_with_pattern` (a `%d` pattern), `create_animate_action` and
    `create_sprite_with_frame`.
  - These raise `AnimationError` when files or frames are missing.
- `platformer_demo.tilemap`
  - `load_tmx(path)` and `parse_tmx(text)` read orthogonal TMX maps with CSV, XML or
    base64 data, optionally zlib- or gzip-compressed.
  - `collision_nodes(tile_map)` builds static bodies for the `Ground` layer's tiles
    marked `collidable` (category 0x01) or `Wal` (category 0x02).
  - `spawn_position(tile_map)` finds the player's spawn point in the `Objects` group and
    falls back to (100, 100).
- `platformer_demo.controller`: `Controllers`
  - Handles run, jump and dash on the A/D/arrow, Space/W/Up and Shift keys.
  - Tracks a `MotionState` and can switch the player sprite's animation with
    `change_animation_by_state`.
- `platformer_demo.scenes`: `MenuScene` (with `start_game`), `GameScene` and
  `HelloWorldScene` (with `close`). They raise `SceneError` when a level cannot be built.
- `platformer_demo.demos`
  - `PhysicsDemo`: a static ground, a falling ball and a clickable polygon built with
    `create_polygon` and `click_sprite`.
  - `CollisionDemo`: two coins that meet, after which the second coin is removed.
- `platformer_demo.app`: `AppDelegate`, `content_scale_factor(frame_size)` and `main`.

## Example

```python
from platformer_demo.nodes import Key, PhysicsBody, Size, Sprite
from platformer_demo.controller import Controllers

player = Sprite()
player.set_physics_body(PhysicsBody.box(Size(100, 115)))

controller = Controllers()
controller.set_player(player)
controller.on_key_pressed(Key.RIGHT_ARROW)
controller.update(1 / 60)
print(player.physics_body.velocity)  # x is the run speed, 200
```

## What it does not do

- Nothing is drawn, and no window is opened or read for keyboard input. Scenes are
  driven by calling `Scene.update` and the controllers' `on_key_pressed` and
  `on_key_released` methods.
- Physics works on axis-aligned bounds only. Rotation is not simulated.
- The only player controller is `Controllers`. No controller tracks standing on the
  ground or clinging to walls, so jumps and dashes are allowed at any time.