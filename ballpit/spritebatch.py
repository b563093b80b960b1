"""Collecting textured quads into draw batches."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ballpit.vertex import UV, ColorRGBA8, Position, Vec2, Vertex

Rect = Tuple[float, float, float, float]

_VERTICES_PER_GLYPH = 6


class GlyphSortType(Enum):
    NONE = "none"
    FRONT_TO_BACK = "front_to_back"
    BACK_TO_FRONT = "back_to_front"
    TEXTURE = "texture"


@dataclass
class RenderBatch:
    """A run of consecutive vertices sharing one texture."""

    offset: int
    num_vertices: int
    texture: int


def rotate_point(pos: Vec2, angle: float) -> Vec2:
    """Rotate a point about the origin by ``angle`` radians."""
    c, s = math.cos(angle), math.sin(angle)
    return Vec2(pos.x * c - pos.y * s, pos.x * s + pos.y * c)


class Glyph:
    """A textured quad; ``dest_rect`` and ``uv_rect`` are (x, y, width, height)."""

    __slots__ = ("texture", "depth", "top_left", "bottom_left", "top_right", "bottom_right")

    def __init__(
        self,
        dest_rect: Rect,
        uv_rect: Rect,
        texture: int,
        depth: float,
        color: ColorRGBA8,
        angle: Optional[float] = None,
    ) -> None:
        self.texture = texture
        self.depth = depth
        x, y, w, h = dest_rect
        u, v, uw, vh = uv_rect

        if angle is None:
            tl, bl, br, tr = Vec2(x, y + h), Vec2(x, y), Vec2(x + w, y), Vec2(x + w, y + h)
        else:
            half = Vec2(w / 2.0, h / 2.0)
            origin = Vec2(x, y)
            corners = (
                Vec2(-half.x, half.y),
                Vec2(-half.x, -half.y),
                Vec2(half.x, -half.y),
                Vec2(half.x, half.y),
            )
            tl, bl, br, tr = (origin + rotate_point(c, angle) + half for c in corners)

        self.top_left = Vertex(Position(tl.x, tl.y), color, UV(u, v + vh))
        self.bottom_left = Vertex(Position(bl.x, bl.y), color, UV(u, v))
        self.bottom_right = Vertex(Position(br.x, br.y), color, UV(u + uw, v))
        self.top_right = Vertex(Position(tr.x, tr.y), color, UV(u + uw, v + vh))

    @property
    def vertices(self) -> Tuple[Vertex, ...]:
        """The two triangles of the quad, in draw order."""
        return (
            self.top_left,
            self.bottom_left,
            self.bottom_right,
            self.bottom_right,
            self.top_right,
            self.top_left,
        )


class SpriteBatch:
    """Accumulates glyphs between ``begin`` and ``end`` and groups them by texture."""

    def __init__(self) -> None:
        self.sort_type = GlyphSortType.TEXTURE
        self.glyphs: list[Glyph] = []
        self.render_batches: list[RenderBatch] = []
        self.vertices: list[Vertex] = []

    def begin(self, sort_type: GlyphSortType = GlyphSortType.TEXTURE) -> None:
        self.sort_type = sort_type
        self.render_batches = []
        self.glyphs = []

    def end(self) -> None:
        """Sort the glyphs and build the render batches and vertex list."""
        self._sort_glyphs()
        self._create_render_batches()

    def draw(
        self,
        dest_rect: Rect,
        uv_rect: Rect,
        texture: int,
        depth: float,
        color: ColorRGBA8,
        angle: Optional[float] = None,
    ) -> None:
        self.glyphs.append(Glyph(dest_rect, uv_rect, texture, depth, color, angle))

    def render_batch(self, draw_call: Callable[[RenderBatch], None]) -> None:
        """Hand each render batch, in order, to ``draw_call``."""
        for batch in self.render_batches:
            draw_call(batch)

    def _sort_glyphs(self) -> None:
        if self.sort_type is GlyphSortType.FRONT_TO_BACK:
            self.glyphs.sort(key=lambda g: g.depth)
        elif self.sort_type is GlyphSortType.BACK_TO_FRONT:
            self.glyphs.sort(key=lambda g: g.depth, reverse=True)
        elif self.sort_type is GlyphSortType.TEXTURE:
            self.glyphs.sort(key=lambda g: g.texture)

    def _create_render_batches(self) -> None:
        self.render_batches = []
        self.vertices = []
        for glyph in self.glyphs:
            last = self.render_batches[-1] if self.render_batches else None
            if last is not None and last.texture == glyph.texture:
                last.num_vertices += _VERTICES_PER_GLYPH
            else:
                self.render_batches.append(
                    RenderBatch(len(self.vertices), _VERTICES_PER_GLYPH, glyph.texture)
                )
            self.vertices.extend(glyph.vertices)