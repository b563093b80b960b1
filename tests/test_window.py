from unittest import mock

import pygame
import pytest

from ballpit.errors import EngineError
from ballpit.window import MainWindow, WindowFlags


@pytest.fixture
def dummy_display(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    pygame.display.quit()
    yield
    pygame.display.quit()


def test_create_opens_window_of_requested_size(dummy_display):
    window = MainWindow()
    window.create("Ball Game", 320, 240, WindowFlags.INVISIBLE)
    assert window.surface.get_size() == (320, 240)
    assert (window.screen_width, window.screen_height) == (320, 240)
    assert pygame.display.get_caption()[0] == "Ball Game"


def test_swap_buffer_after_create_keeps_surface(dummy_display):
    window = MainWindow()
    window.create("swap", 64, 48, 0)
    window.surface.fill((255, 0, 0))
    window.swap_buffer()
    assert window.surface.get_at((0, 0))[:3] == (255, 0, 0)


def test_swap_buffer_before_create_is_fatal():
    with pytest.raises(EngineError):
        MainWindow().swap_buffer()


def test_window_creation_failure_is_fatal(dummy_display):
    window = MainWindow()
    with mock.patch("pygame.display.set_mode", side_effect=pygame.error("boom")):
        with pytest.raises(EngineError, match="could not be created"):
            window.create("broken", 100, 100, 0)
    assert window.surface is None


def test_flags_combine():
    combined = WindowFlags.INVISIBLE | WindowFlags.BORDERLESS
    assert int(combined) == 0x1 | 0x4
    assert WindowFlags(int(combined)) & WindowFlags.BORDERLESS == WindowFlags.BORDERLESS
    assert int(combined & WindowFlags.FULLSCREEN) == 0