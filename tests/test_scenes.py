import plistlib
import struct

import pytest

from platformer_demo.animation import SpriteFrameCache
from platformer_demo.controller import Controllers
from platformer_demo.nodes import Director, Vec2
from platformer_demo.scenes import (
    GameScene,
    HelloWorldScene,
    MenuScene,
    SceneError,
)
from platformer_demo.tilemap import spawn_position

MAP = """<?xml version="1.0" encoding="UTF-8"?>
<map version="1.10" orientation="orthogonal" width="3" height="2" tilewidth="32" tileheight="32">
 <tileset firstgid="1" name="tiles" tilewidth="32" tileheight="32" tilecount="2" columns="2">
  <tile id="0"><properties><property name="collidable" type="bool" value="true"/></properties></tile>
  <tile id="1"><properties><property name="Wal" type="bool" value="true"/></properties></tile>
 </tileset>
 <layer id="1" name="{layer}" width="3" height="2">
  <data encoding="csv">
0,0,0,
1,1,2
</data>
 </layer>
 <objectgroup id="2" name="Objects">
  <object id="1" name="player" x="40" y="10"/>
 </objectgroup>
</map>
"""


def _write_map(directory, layer="Ground"):
    (directory / "Map1.tmx").write_text(MAP.replace("{layer}", layer), encoding="utf-8")


def _png(width, height):
    return b"\x89PNG\r\n\x1a\n" + struct.pack(">I", 13) + b"IHDR" + struct.pack(">II", width, height) + b"\x08\x06\x00\x00\x00"


def _categories(scene):
    return [
        n.physics_body.category_bitmask
        for n in scene.children
        if n.physics_body is not None and n is not scene.player
    ]


def test_game_scene_builds_collision_tiles(tmp_path):
    _write_map(tmp_path)
    scene = GameScene(Director(), str(tmp_path))
    assert scene.tile_map is not None
    assert scene.tile_map.scale == 0.8
    assert scene.physics_world.gravity == Vec2(0, -980)
    cats = _categories(scene)
    assert sorted(cats) == [0x01, 0x01, 0x02]
    assert len(scene.physics_world.bodies) == 4


def test_game_scene_player_body(tmp_path):
    _write_map(tmp_path)
    scene = GameScene(Director(), str(tmp_path))
    player = scene.player
    body = player.physics_body
    assert body.category_bitmask == 0x03
    assert body.rotation_enabled is False
    assert body.dynamic is True
    assert body.mass == 1.0
    assert body.material.friction == 0.7
    assert player.position == spawn_position(scene.tile_map)
    assert body in scene.physics_world.bodies


def test_game_scene_without_atlas_uses_blank_sprite(tmp_path):
    _write_map(tmp_path)
    scene = GameScene(Director(), str(tmp_path))
    assert scene.player.frame is None
    assert scene.player.parent is scene


def test_game_scene_controller_drives_player(tmp_path):
    _write_map(tmp_path)
    scene = GameScene(Director(), str(tmp_path))
    controllers = [n for n in scene.children if isinstance(n, Controllers)]
    assert controllers == [scene.controller]
    assert scene.controller.player is scene.player


def test_game_scene_uses_atlas_frame(tmp_path):
    _write_map(tmp_path)
    atlas = {"frames": {"IdelRight1.png": {"frame": "{{0,0},{64,80}}", "rotated": False}}}
    (tmp_path / "Idel.plist").write_bytes(plistlib.dumps(atlas))
    (tmp_path / "Idel.png").write_bytes(_png(64, 80))
    cache = SpriteFrameCache()
    scene = GameScene(Director(), str(tmp_path), cache)
    assert scene.player.frame.name == "IdelRight1.png"
    assert scene.player.scale == 0.5
    assert "IdelRight1.png" in cache.frames


def test_game_scene_missing_map(tmp_path):
    with pytest.raises(SceneError):
        GameScene(Director(), str(tmp_path))


def test_game_scene_without_ground_layer(tmp_path):
    _write_map(tmp_path, layer="Background")
    with pytest.raises(SceneError):
        GameScene(Director(), str(tmp_path))


def test_game_scene_title(tmp_path):
    _write_map(tmp_path)
    director = Director()
    scene = GameScene(director, str(tmp_path))
    assert scene.title.text == "Map1"
    assert scene.title.position.x == director.visible_size.width / 2


def test_menu_start_game_replaces_scene(tmp_path):
    _write_map(tmp_path)
    director = Director()
    menu = MenuScene(director, str(tmp_path))
    director.run_with_scene(menu)
    game = menu.start_game()
    assert director.running_scene is game
    assert director.last_transition.duration == 0.5
    assert director.last_transition.scene is game


def test_menu_start_game_failure_keeps_menu(tmp_path):
    director = Director()
    menu = MenuScene(director, str(tmp_path))
    director.run_with_scene(menu)
    with pytest.raises(SceneError):
        menu.start_game()
    assert director.running_scene is menu


def test_menu_layout():
    director = Director()
    menu = MenuScene(director)
    assert menu.title.text == "Scene Menu"
    assert menu.start_item.text == "Start Game"
    assert menu.start_item.position == Vec2(
        director.visible_size.width / 2, director.visible_size.height / 2
    )
    assert menu.title.position.y == director.visible_size.height - menu.title.content_size.height


def test_hello_world_reports_missing_files(tmp_path):
    scene = HelloWorldScene(Director(), str(tmp_path))
    assert scene.problems == ["'CloseNormal.png' and 'CloseSelected.png'", "'HelloWorld.png'"]
    assert scene.splash is None


def test_hello_world_with_images(tmp_path):
    (tmp_path / "CloseNormal.png").write_bytes(_png(40, 40))
    (tmp_path / "HelloWorld.png").write_bytes(_png(200, 100))
    director = Director()
    scene = HelloWorldScene(director, str(tmp_path))
    assert scene.problems == []
    assert scene.close_item.position == Vec2(director.visible_size.width - 40 / 2, 40 / 2)
    assert scene.splash.position == Vec2(
        director.visible_size.width / 2, director.visible_size.height / 2
    )
    assert scene.splash.parent is scene


def test_hello_world_close_ends_director(tmp_path):
    director = Director()
    scene = HelloWorldScene(director, str(tmp_path))
    director.run_with_scene(scene)
    scene.close()
    assert director.ended is True
    assert director.running_scene is None