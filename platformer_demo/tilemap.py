"""TMX tile maps: parsing, collision bodies and spawn points."""

from __future__ import annotations

import base64
import gzip
import logging
import os
import struct
import xml.etree.ElementTree as ET
import zlib
from dataclasses import dataclass
from typing import Any, Optional

from .nodes import ALL_BITS, Node, PhysicsBody, Size, Vec2

log = logging.getLogger(__name__)

GROUND_CATEGORY = 0x01
WALL_CATEGORY = 0x02
DEFAULT_SPAWN = Vec2(100, 100)
_GID_MASK = 0x1FFFFFFF


class TileMapError(Exception):
    """Raised when a tile map cannot be read or lacks a required part."""


@dataclass
class TileLayer:
    """A grid of tile GIDs; row 0 is the top row."""

    name: str
    width: int
    height: int
    gids: list[int]

    def gid_at(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise TileMapError(f"tile ({x}, {y}) is outside layer {self.name}")
        return self.gids[y * self.width + x] & _GID_MASK


class TileMap(Node):
    """A parsed orthogonal tile map placed as a node."""

    def __init__(
        self,
        map_size: Size,
        tile_size: Size,
        layers: Optional[dict[str, TileLayer]] = None,
        tile_properties: Optional[dict[int, dict[str, Any]]] = None,
        object_groups: Optional[dict[str, list[dict[str, Any]]]] = None,
    ) -> None:
        super().__init__(
            content_size=Size(map_size.width * tile_size.width, map_size.height * tile_size.height),
            anchor_point=Vec2(0.0, 0.0),
        )
        self.map_size = map_size
        self.tile_size = tile_size
        self.layers = layers or {}
        self.tile_properties = tile_properties or {}
        self.object_groups = object_groups or {}

    def layer(self, name: str) -> Optional[TileLayer]:
        return self.layers.get(name)

    def properties_for_gid(self, gid: int) -> Optional[dict[str, Any]]:
        props = self.tile_properties.get(gid)
        return dict(props) if props is not None else None

    def object_group(self, name: str) -> Optional[list[dict[str, Any]]]:
        return self.object_groups.get(name)


def _parse_xml(text: str, what: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        raise TileMapError(f"invalid {what}: {exc}") from exc


def _int_attr(el: ET.Element, name: str, default: Optional[int] = None) -> int:
    value = el.get(name)
    if value is None:
        if default is None:
            raise TileMapError(f"<{el.tag}> lacks attribute {name}")
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise TileMapError(f"<{el.tag}> attribute {name} is not an integer: {value}") from exc


def _convert(raw: str, kind: str) -> Any:
    try:
        if kind == "bool":
            return raw.strip().lower() == "true"
        if kind == "int":
            return int(raw)
        if kind == "float":
            return float(raw)
    except ValueError as exc:
        raise TileMapError(f"bad {kind} property value: {raw}") from exc
    return raw


def _properties(el: ET.Element) -> dict[str, Any]:
    container = el.find("properties")
    if container is None:
        return {}
    props: dict[str, Any] = {}
    for prop in container.findall("property"):
        name = prop.get("name")
        if name is None:
            continue
        props[name] = _convert(prop.get("value", prop.text or ""), prop.get("type", "string"))
    return props


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value not in ("0", "false")
    return bool(value)


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _decode_data(data: ET.Element, count: int, name: str) -> list[int]:
    encoding = data.get("encoding")
    compression = data.get("compression")
    text = (data.text or "").strip()
    try:
        if encoding is None:
            gids = [int(tile.get("gid", "0")) for tile in data.findall("tile")]
        elif encoding == "csv":
            gids = [int(v) for v in text.split(",") if v.strip()]
        elif encoding == "base64":
            raw = base64.b64decode(text)
            if compression == "zlib":
                raw = zlib.decompress(raw)
            elif compression == "gzip":
                raw = gzip.decompress(raw)
            elif compression:
                raise TileMapError(f"unsupported compression {compression} in layer {name}")
            if len(raw) % 4:
                raise TileMapError(f"layer {name} data is not a whole number of tiles")
            gids = list(struct.unpack(f"<{len(raw) // 4}I", raw))
        else:
            raise TileMapError(f"unsupported encoding {encoding} in layer {name}")
    except (ValueError, zlib.error, OSError) as exc:
        raise TileMapError(f"cannot decode layer {name}: {exc}") from exc
    if len(gids) != count:
        raise TileMapError(f"layer {name} has {len(gids)} tiles, expected {count}")
    return gids


def _tileset_element(ts: ET.Element, base_dir: Optional[str]) -> ET.Element:
    source = ts.get("source")
    if source is None:
        return ts
    if base_dir is None:
        raise TileMapError(f"external tileset {source} needs the map's file path")
    path = os.path.join(base_dir, source)
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise TileMapError(f"cannot read tileset {path}: {exc}") from exc
    return _parse_xml(text, f"tileset {source}")


def _parse_map(text: str, base_dir: Optional[str]) -> TileMap:
    root = _parse_xml(text, "tile map")
    if root.tag != "map":
        raise TileMapError(f"root element is <{root.tag}>, not <map>")
    width, height = _int_attr(root, "width"), _int_attr(root, "height")
    tile_w, tile_h = _int_attr(root, "tilewidth"), _int_attr(root, "tileheight")

    tile_properties: dict[int, dict[str, Any]] = {}
    for ts in root.findall("tileset"):
        first_gid = _int_attr(ts, "firstgid")
        for tile in _tileset_element(ts, base_dir).findall("tile"):
            props = _properties(tile)
            if props:
                tile_properties[first_gid + _int_attr(tile, "id")] = props

    layers: dict[str, TileLayer] = {}
    for layer_el in root.iter("layer"):
        name = layer_el.get("name", "")
        lw = _int_attr(layer_el, "width", width)
        lh = _int_attr(layer_el, "height", height)
        data = layer_el.find("data")
        if data is None:
            raise TileMapError(f"layer {name} has no data")
        layers.setdefault(name, TileLayer(name, lw, lh, _decode_data(data, lw * lh, name)))

    pixel_height = height * tile_h
    object_groups: dict[str, list[dict[str, Any]]] = {}
    for group in root.iter("objectgroup"):
        objects = []
        for obj in group.findall("object"):
            obj_h = _as_float(obj.get("height", 0))
            entry: dict[str, Any] = {
                "name": obj.get("name", ""),
                "type": obj.get("type", obj.get("class", "")),
                "x": _as_float(obj.get("x", 0)),
                "y": pixel_height - _as_float(obj.get("y", 0)) - obj_h,
                "width": _as_float(obj.get("width", 0)),
                "height": obj_h,
            }
            entry.update(_properties(obj))
            objects.append(entry)
        object_groups.setdefault(group.get("name", ""), objects)

    return TileMap(Size(width, height), Size(tile_w, tile_h), layers, tile_properties, object_groups)


def parse_tmx(text: str) -> TileMap:
    """Parse TMX text; object y coordinates are converted to a bottom-left origin."""
    return _parse_map(text, None)


def load_tmx(path: str) -> TileMap:
    """Read a TMX file, resolving external tilesets beside it."""
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise TileMapError(f"Failed to load {path}: {exc}") from exc
    return _parse_map(text, os.path.dirname(os.path.abspath(path)))


def _tile_node(tile_map: TileMap, x: int, y: int, category: int) -> Node:
    tile_size = tile_map.tile_size
    body = PhysicsBody.box(tile_size)
    body.dynamic = False
    body.category_bitmask = category
    body.collision_bitmask = ALL_BITS
    body.contact_test_bitmask = ALL_BITS
    node = Node(
        position=Vec2(
            x * tile_size.width + tile_size.width / 2,
            (tile_map.map_size.height - y - 1) * tile_size.height + tile_size.height / 2,
        )
    )
    node.set_physics_body(body)
    return node


def collision_nodes(tile_map: TileMap) -> list[Node]:
    """Static body nodes for the Ground layer's collidable and wall tiles."""
    layer = tile_map.layer("Ground")
    if layer is None:
        raise TileMapError("Ground layer not found in tile map")
    nodes = []
    for x in range(int(tile_map.map_size.width)):
        for y in range(int(tile_map.map_size.height)):
            gid = layer.gid_at(x, y)
            if gid == 0:
                continue
            props = tile_map.properties_for_gid(gid)
            if not props:
                continue
            for key, category in (("collidable", GROUND_CATEGORY), ("Wal", WALL_CATEGORY)):
                if key in props and _as_bool(props[key]):
                    nodes.append(_tile_node(tile_map, x, y, category))
    return nodes


def spawn_position(tile_map: TileMap) -> Vec2:
    """The player's spawn point from the Objects group, or a default."""
    group = tile_map.object_group("Objects")
    if group is None:
        log.warning("Object group 'Objects' not found in the map")
        return DEFAULT_SPAWN
    for obj in group:
        name = str(obj.get("name", ""))
        kind = str(obj.get("Kind", ""))
        if kind == "Player1" or name == "player":
            x, y = _as_float(obj.get("x", 0)), _as_float(obj.get("y", 0))
            log.debug("Found spawn point at: (%f, %f)", x, y)
            return Vec2(x, y)
    log.warning("No spawn point found, using default position")
    return DEFAULT_SPAWN