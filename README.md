# ballpit

A 2D ball sandbox: a thousand balls bounce around a window, collide with one
another and pass their colour on when they hit. Grab a ball with the mouse and
throw it, and change the direction of gravity with the arrow keys.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Playing

```
ballpit
```

The command takes no options besides `--help`. It opens a 1024 x 768 window
titled "Ball Game" and runs until the window is closed or Escape is pressed.

At start-up the game loads the PNG image `../../images/circle.png`, relative to
the current directory. If that file is missing or is not a valid PNG, the game
stops with an `ballpit.errors.EngineError`.

Controls:

| Key / action        | Effect                                  |
|---------------------|-----------------------------------------|
| Mouse drag          | Grab a ball and throw it                |
| Left arrow          | Gravity pulls to the left               |
| Right arrow         | Gravity pulls to the right              |
| Up arrow            | Gravity pulls upwards                   |
| Down arrow          | Gravity pulls downwards                 |
| Space               | Turn gravity off                        |
| 1                   | Switch to the next ball renderer        |
| Escape              | Quit                                    |

There are four renderers. `BallRenderer` shows each ball in its own colour.
`MomentumBallRenderer` shows momentum as brightness. `VelocityBallRenderer`
shows the positive horizontal speed and the screen position. `TrippyBallRenderer`
draws a spiral that turns over time. Each has its own background colour.

## Using the pieces

The simulation does not need a window. `ballpit.grid.Grid` splits the play area
into cells, and `ballpit.ball_controller.BallController` moves the balls, applies
friction and gravity, bounces them off the walls and resolves collisions between
balls in the same and neighbouring cells:

```python
from ballpit.vertex import Vec2, ColorRGBA8
from ballpit.grid import Grid
from ballpit.ball_controller import Ball, BallController, GravityDirection

grid = Grid(1024, 768, 12)
balls = [
    Ball(10.0, 2.0, Vec2(100.0, 100.0), Vec2(1.0, 0.0), 0, ColorRGBA8(255, 0, 0, 255)),
    Ball(10.0, 2.0, Vec2(115.0, 100.0), Vec2(-1.0, 0.0), 0, ColorRGBA8(0, 0, 255, 255)),
]
for ball in balls:
    grid.add_ball(ball)

controller = BallController()
controller.gravity_direction = GravityDirection.DOWN
controller.update_balls(balls, grid, 1.0, 1024, 768)
```

`ballpit.ball_controller.resolve_collision(b1, b2)` separates and deflects a
single pair of balls, and `is_mouse_on_ball(ball, x, y)` tests a point against a
ball's bounding square.

Other modules:

- `ballpit.png.decode_png(data, convert_to_rgba32=True)` decodes PNG data
  (all standard colour types and bit depths, plain or Adam7 interlaced) and
  returns a `DecodedImage`; bad data raises `PNGError` with a numeric `code`.
- `ballpit.inflate` provides `inflate` for raw DEFLATE streams and
  `zlib_decompress` for zlib streams (the Adler-32 checksum is not checked);
  errors raise `InflateError`.
- `ballpit.resources` reads files (`read_file`), loads PNG files as `Texture`
  objects (`load_png`) and caches them by path (`TextureCache`, `get_texture`).
  It also holds the screen size and the asset path constants.
- `ballpit.spritebatch.SpriteBatch` collects quads, sorts them by texture or
  depth and groups them into `RenderBatch` runs; `render_batch` hands each run to
  a callback you supply.
- `ballpit.camera.Camera` builds an orthographic camera matrix, turns screen
  coordinates into world coordinates and tests whether a box is in view.
- `ballpit.input.InputManager` tracks which keys are held down and which were
  pressed this frame.
- `ballpit.timing.FpsLimiter` caps the frame rate and averages the FPS over the
  last ten frames; the clock and sleep functions can be passed in.
- `ballpit.particles` has fixed-size `ParticleBatch` pools and a
  `ParticleEngine` that updates and draws them.
- `ballpit.spritefont.SpriteFont` packs a range of characters from a TrueType
  font (rendered with pygame) into one RGBA texture and lays out text with
  `measure` and `draw`.
- `ballpit.window.MainWindow` opens a pygame window with `WindowFlags`.

## What it does not do

- There is no sound or music.
- The game draws the balls as plain pygame circles on a software surface. The
  sprite batch, camera matrix and texture data are computed but nothing sends
  them to a GPU; there is no shader or OpenGL rendering.