"""Keyboard and mouse state tracking."""

from __future__ import annotations

from ballpit.vertex import Vec2


class InputManager:
    """Tracks key states for the current and previous frame, and the mouse position."""

    def __init__(self) -> None:
        self._key_map: dict[int, bool] = {}
        self._prev_key_map: dict[int, bool] = {}
        self.mouse_coords = Vec2(0.0, 0.0)

    def update(self) -> None:
        """Remember the current key states as the previous frame's."""
        self._prev_key_map.update(self._key_map)

    def press_key(self, key_id: int) -> None:
        self._key_map[key_id] = True

    def release_key(self, key_id: int) -> None:
        self._key_map[key_id] = False

    def is_key_down(self, key_id: int) -> bool:
        """True while the key is held."""
        return self._key_map.get(key_id, False)

    def is_key_pressed(self, key_id: int) -> bool:
        """True only on the frame the key went down."""
        return self.is_key_down(key_id) and not self._was_key_down(key_id)

    def set_mouse_coords(self, x: float, y: float) -> None:
        self.mouse_coords = Vec2(float(x), float(y))

    def _was_key_down(self, key_id: int) -> bool:
        return self._prev_key_map.get(key_id, False)