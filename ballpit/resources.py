"""Reading files, loading PNG textures and caching them by path."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Union

from ballpit.errors import fatal_error
from ballpit.png import PNGError, decode_png

PathLike = Union[str, Path]

log = logging.getLogger(__name__)

SCALE_SPEED = 0.1
SCREEN_WIDTH = 1024
SCREEN_HEIGHT = 768


class Shaders:
    """Paths of the main sprite shaders."""

    VERTEX = "../../shaders/VertexShader"
    FRAGMENT = "../../shaders/FragmentShader"


class LightShaders:
    """Paths of the lighting shaders."""

    VERTEX = "../../shaders/VertexLight"
    FRAGMENT = "../../shaders/FragmentLight"


class Images:
    """Paths of the bundled images."""

    BLOOD = "../../images/blood.png"
    NINJA = "../../images/blue_ninja.png"
    PLAYER = "../../images/ninja.png"
    BRICKS = "../../images/bricks.png"
    BULLET = "../../images/Bullet.png"
    CIRCLE = "../../images/circle.png"
    GLASS = "../../images/glass.png"
    HUMAN = "../../images/jimmy.png"
    STEEL = "../../images/steel.png"
    WOOD = "../../images/wood.png"
    ZOMBIE = "../../images/zombie.png"


class Sounds:
    """Paths of the bundled sounds."""

    INTRO = "../../sound/bodies.mp3"
    PISTOL = "../../sound/long_pistol.wav"
    MACHINE_GUN = "../../sound/pistol.wav"
    RIFLE = "../../sound/rifle.wav"
    SHOTGUN = "../../sound/shotgun.wav"


_texture_ids = itertools.count(1)


def _next_texture_id() -> int:
    return next(_texture_ids)


@dataclass(frozen=True)
class Texture:
    """A decoded RGBA image with a unique texture id."""

    width: int
    height: int
    pixels: bytes = field(default=b"", repr=False)
    id: int = field(default_factory=_next_texture_id)


def read_file(file_path: PathLike) -> bytes:
    """Return the whole contents of a file; raises OSError if it cannot be read."""
    return Path(file_path).read_bytes()


def load_png(file_path: PathLike) -> Texture:
    """Load and decode a PNG file into an RGBA texture."""
    try:
        data = read_file(file_path)
    except OSError as exc:
        log.error("%s: %s", file_path, exc)
        fatal_error("Failed to Load PNG File to buffer")
    try:
        image = decode_png(data)
    except PNGError as exc:
        fatal_error(f"decodePNG failed with error code {exc.code}")
    return Texture(image.width, image.height, image.pixels)


class TextureCache:
    """Loads each texture path once and hands out the cached texture afterwards."""

    def __init__(self, loader: Callable[[PathLike], Texture] = load_png) -> None:
        self._loader = loader
        self._textures: Dict[str, Texture] = {}

    def __len__(self) -> int:
        return len(self._textures)

    def __contains__(self, texture_path: object) -> bool:
        return str(texture_path) in self._textures

    def get_texture(self, texture_path: PathLike) -> Texture:
        key = str(texture_path)
        texture = self._textures.get(key)
        if texture is None:
            texture = self._loader(texture_path)
            self._textures[key] = texture
            log.info("New Texture Loaded!")
        return texture


_texture_cache = TextureCache()


def get_texture(texture_path: PathLike) -> Texture:
    """Fetch a texture through the shared cache."""
    return _texture_cache.get_texture(texture_path)