"""The game window."""

from __future__ import annotations

import logging
from enum import IntFlag
from typing import Any, Optional, Union

import pygame

from ballpit.errors import fatal_error

log = logging.getLogger(__name__)


class WindowFlags(IntFlag):
    INVISIBLE = 0x1
    FULLSCREEN = 0x2
    BORDERLESS = 0x4
    MAXIMIZED = 0x8


class MainWindow:
    """A single pygame display window."""

    def __init__(self) -> None:
        self.surface: Optional[Any] = None
        self.screen_width = 0
        self.screen_height = 0

    def create(
        self,
        title: str,
        screen_width: int,
        screen_height: int,
        flags: Union[WindowFlags, int] = 0,
    ) -> None:
        """Open the window; raises EngineError if it cannot be created."""
        flags = WindowFlags(flags)
        self.screen_width = screen_width
        self.screen_height = screen_height

        mode = 0
        size = (screen_width, screen_height)
        if flags & WindowFlags.INVISIBLE:
            mode |= pygame.HIDDEN
        if flags & WindowFlags.FULLSCREEN:
            mode |= pygame.FULLSCREEN
            size = (0, 0)
        if flags & WindowFlags.BORDERLESS:
            mode |= pygame.NOFRAME
        try:
            if not pygame.display.get_init():
                pygame.display.init()
            if flags & WindowFlags.MAXIMIZED and not flags & WindowFlags.FULLSCREEN:
                desktops = pygame.display.get_desktop_sizes()
                if desktops:
                    size = desktops[0]
            surface = pygame.display.set_mode(size, mode)
        except pygame.error:
            fatal_error("SDL Window could not be created!")

        pygame.display.set_caption(title)
        log.info("*** Video driver: %s ***", pygame.display.get_driver())
        self.surface = surface

    def swap_buffer(self) -> None:
        """Show what has been drawn since the last swap."""
        if self.surface is None:
            fatal_error("the window has not been created")
        pygame.display.flip()