"""Simple particle system drawn through a sprite batch."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ballpit.resources import Texture
from ballpit.spritebatch import RenderBatch, SpriteBatch
from ballpit.vertex import ColorRGBA8, Vec2

_FULL_UV = (0.0, 0.0, 1.0, 1.0)


@dataclass
class Particle:
    """A single particle; it is alive while ``life`` is above zero."""

    position: Vec2 = field(default_factory=Vec2)
    velocity: Vec2 = field(default_factory=Vec2)
    life: float = 0.0
    width: float = 0.0
    color: ColorRGBA8 = field(default_factory=ColorRGBA8)

    @property
    def alive(self) -> bool:
        return self.life > 0.0

    def update(self) -> None:
        """Move the particle by its velocity."""
        self.position = self.position + self.velocity


class ParticleBatch:
    """A fixed pool of particles sharing one texture and decay rate."""

    def __init__(self, max_particles: int, decay_rate: float, texture: Texture) -> None:
        if max_particles < 1:
            raise ValueError("a particle batch needs at least one particle")
        self.max_particles = max_particles
        self.decay_rate = decay_rate
        self.texture = texture
        self.particles: List[Particle] = [Particle() for _ in range(max_particles)]
        self._last_free = 0

    def update(self) -> None:
        """Advance every live particle and decay its life."""
        for particle in self.particles:
            if particle.alive:
                particle.update()
                particle.life -= self.decay_rate

    def draw(self, sprite_batch: SpriteBatch) -> None:
        """Queue every live particle as a square sprite."""
        for particle in self.particles:
            if particle.alive:
                dest = (particle.position.x, particle.position.y, particle.width, particle.width)
                sprite_batch.draw(dest, _FULL_UV, self.texture.id, 0.0, particle.color)

    def add_particle(
        self, position: Vec2, velocity: Vec2, width: float, color: ColorRGBA8
    ) -> None:
        """Spawn a particle in a free slot, or overwrite the first one if the pool is full."""
        particle = self.particles[self._find_free_particle()]
        particle.life = 1.0
        particle.position = position
        particle.velocity = velocity
        particle.color = color
        particle.width = width

    def _find_free_particle(self) -> int:
        candidates = itertools.chain(
            range(self._last_free, self.max_particles), range(self.max_particles)
        )
        for index in candidates:
            if not self.particles[index].alive:
                self._last_free = index
                return index
        return 0


class ParticleEngine:
    """Owns particle batches and updates and draws them together.

    ``draw_call`` receives each render batch produced while drawing.
    """

    def __init__(self, draw_call: Optional[Callable[[RenderBatch], None]] = None) -> None:
        self.batches: List[ParticleBatch] = []
        self._draw_call = draw_call or (lambda batch: None)

    def add_particle_batch(self, particle_batch: ParticleBatch) -> None:
        self.batches.append(particle_batch)

    def update(self) -> None:
        for batch in self.batches:
            batch.update()

    def draw(self, sprite_batch: SpriteBatch) -> None:
        """Draw each particle batch as its own sprite batch pass."""
        for batch in self.batches:
            sprite_batch.begin()
            batch.draw(sprite_batch)
            sprite_batch.end()
            sprite_batch.render_batch(self._draw_call)