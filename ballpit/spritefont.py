"""Bitmap fonts built from TrueType fonts, drawn through a sprite batch."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from ballpit.errors import fatal_error
from ballpit.resources import Texture
from ballpit.spritebatch import Rect, SpriteBatch
from ballpit.vertex import ColorRGBA8, Vec2

MAX_TEXTURE_RES = 4096


class Justification(Enum):
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"


@dataclass(frozen=True)
class CharGlyph:
    """Where a character sits in the font texture and how big it is in pixels."""

    character: str
    uv_rect: Rect
    size: Vec2


def closest_pow2(i: int) -> int:
    """Smallest power of two not below ``i`` (1 for ``i`` <= 1)."""
    i -= 1
    power = 1
    while i > 0:
        i >>= 1
        power <<= 1
    return power


def create_rows(widths: Iterable[int], rows: int, padding: int) -> Tuple[List[List[int]], int]:
    """Greedily distribute glyphs into rows, each going to the currently narrowest row.

    Returns the glyph indices of each row and the width of the widest row.
    """
    if rows < 1:
        raise ValueError("at least one row is needed")
    row_widths = [padding] * rows
    layout: List[List[int]] = [[] for _ in range(rows)]
    for index, width in enumerate(widths):
        row = min(range(rows), key=row_widths.__getitem__)
        row_widths[row] += width + padding
        layout[row].append(index)
    return layout, max(0, max(row_widths))


def _open_font(font: Optional[str], size: int):
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
    import pygame
    import pygame.font

    if not pygame.font.get_init():
        pygame.font.init()
    try:
        return pygame.font.Font(font, size)
    except (OSError, pygame.error):
        fatal_error(f"Failed to open TTF font {font}")


def _glyph_width(pg_font, char: str) -> int:
    metrics = pg_font.metrics(char)
    metric = metrics[0] if metrics else None
    if metric is None:
        return 0
    min_x, max_x = metric[0], metric[1]
    return max_x - min_x


def _render_glyph(pg_font, char: str) -> Tuple[int, int, bytes]:
    """Render one glyph in white and premultiply its colour by its alpha."""
    import pygame

    surface = pg_font.render(char, True, (255, 255, 255))
    width, height = surface.get_size()
    raw = bytearray(pygame.image.tostring(surface, "RGBA"))
    premultiplied = bytes(
        int(red * (alpha / 255.0)) for red, alpha in zip(raw[0::4], raw[3::4])
    )
    raw[0::4] = raw[1::4] = raw[2::4] = premultiplied
    return width, height, bytes(raw)


def _blit(
    atlas: bytearray,
    atlas_width: int,
    atlas_height: int,
    x: int,
    y: int,
    width: int,
    height: int,
    pixels: bytes,
) -> None:
    """Copy an RGBA block into the atlas, clipping it to the atlas bounds."""
    x0, x1 = max(x, 0), min(x + width, atlas_width)
    if x1 <= x0:
        return
    span = (x1 - x0) * 4
    for row in range(height):
        target_y = y + row
        if not 0 <= target_y < atlas_height:
            continue
        src = (row * width + (x0 - x)) * 4
        dst = (target_y * atlas_width + x0) * 4
        atlas[dst:dst + span] = pixels[src:src + span]


class SpriteFont:
    """A range of characters from a TrueType font packed into one RGBA texture.

    ``font`` is a path to a font file, or None for the default font.
    Characters outside ``start``..``end`` draw as a small white square.
    """

    def __init__(self, font: Optional[str], size: int, start: str, end: str) -> None:
        if len(start) != 1 or len(end) != 1:
            raise ValueError("the character range is given by two single characters")
        first, last = ord(start), ord(end)
        if last < first:
            raise ValueError("the character range is empty")

        pg_font = _open_font(font, size)
        self.font_height: int = pg_font.get_height()
        self.start = first
        self.length = last - first + 1
        padding = size // 8

        widths = [_glyph_width(pg_font, chr(code)) for code in range(first, last + 1)]

        best: Optional[Tuple[List[List[int]], int, int]] = None
        area = MAX_TEXTURE_RES * MAX_TEXTURE_RES
        rows = 1
        while rows <= self.length:
            height = closest_pow2(rows * (padding + self.font_height) + padding)
            layout, width = create_rows(widths, rows, padding)
            width = closest_pow2(width)
            if width > MAX_TEXTURE_RES or height > MAX_TEXTURE_RES:
                rows += 1
                continue
            if area >= width * height:
                best = (layout, width, height)
                area = width * height
                rows += 1
            else:
                break

        if best is None:
            fatal_error(f"Failed to Map TTF font {font} to texture. Try lowering resolution.")

        layout, tex_width, tex_height = best
        atlas = bytearray(4 * tex_width * tex_height)
        rects: List[Tuple[int, int, int, int]] = [(0, 0, w, 0) for w in widths]

        line_y = padding
        for row in layout:
            line_x = padding
            for index in row:
                glyph_w, glyph_h, pixels = _render_glyph(pg_font, chr(first + index))
                _blit(
                    atlas, tex_width, tex_height,
                    line_x, tex_height - line_y - 1 - glyph_h,
                    glyph_w, glyph_h, pixels,
                )
                rects[index] = (line_x, line_y, glyph_w, glyph_h)
                line_x += glyph_w + padding
            line_y += self.font_height + padding

        square = padding - 1
        if square > 0:
            _blit(atlas, tex_width, tex_height, 0, 0, square, square, b"\xff" * (4 * square * square))

        self.glyphs: List[CharGlyph] = [
            CharGlyph(
                chr(first + index),
                (x / tex_width, y / tex_height, w / tex_width, h / tex_height),
                Vec2(float(w), float(h)),
            )
            for index, (x, y, w, h) in enumerate(rects)
        ]
        self.glyphs.append(
            CharGlyph(
                " ",
                (0.0, 0.0, square / tex_width, square / tex_height),
                self.glyphs[0].size,
            )
        )
        self.texture: Optional[Texture] = Texture(tex_width, tex_height, bytes(atlas))

    def _glyph(self, char: str) -> CharGlyph:
        index = ord(char) - self.start
        if not 0 <= index < self.length:
            index = self.length
        return self.glyphs[index]

    def measure(self, text: str) -> Vec2:
        """Width of the widest line and total height of the text, in pixels."""
        width = 0.0
        height = float(self.font_height)
        line_width = 0.0
        for char in text:
            if char == "\n":
                height += self.font_height
                width = max(width, line_width)
                line_width = 0.0
            else:
                line_width += self._glyph(char).size.x
        return Vec2(max(width, line_width), height)

    def draw(
        self,
        batch: SpriteBatch,
        text: str,
        position: Vec2,
        scaling: Vec2,
        depth: float,
        tint: ColorRGBA8,
        justification: Justification = Justification.LEFT,
    ) -> None:
        """Queue one sprite per character; a newline moves down and back to ``position.x``."""
        if self.texture is None:
            raise RuntimeError("the font has been disposed")
        x, y = position.x, position.y
        if justification is Justification.MIDDLE:
            x -= self.measure(text).x * scaling.x / 2
        elif justification is Justification.RIGHT:
            x -= self.measure(text).x * scaling.x
        for char in text:
            if char == "\n":
                y += self.font_height * scaling.y
                x = position.x
                continue
            glyph = self._glyph(char)
            width = glyph.size.x * scaling.x
            dest = (x, y, width, glyph.size.y * scaling.y)
            batch.draw(dest, glyph.uv_rect, self.texture.id, depth, tint)
            x += width

    def dispose(self) -> None:
        """Release the texture and glyph table."""
        self.texture = None
        self.glyphs = []