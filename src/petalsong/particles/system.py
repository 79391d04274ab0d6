"""
Two-phase scatter particle simulation.

When the flower scatters, every point of its shape becomes a particle:

- Scatter: particles fly apart with a volume-driven kick and a
  pitch-driven vertical bias, fall under gravity and fade out.
- Converge: once the cloud has mostly faded, particles are pulled back to
  the seed, faster when far away, and fade back in as they approach.

All motion is expressed per reference frame (60 fps) and scaled by dt,
so results do not depend on the caller's frame rate.
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from petalsong.geometry.shapes import ShapePoint

logger = logging.getLogger(__name__)


class ParticlePhase(str, enum.Enum):
    SCATTER = "scatter"
    CONVERGE = "converge"


@dataclass
class Particle:
    """A single scattered fragment of the plant."""
    x: float
    y: float
    vx: float
    vy: float
    color: str
    alpha: float        # 1.0 to 0.0
    size: float
    target_x: float
    target_y: float
    life: float         # 1.0 to 0.0
    max_life: float     # seconds
    birth_time: float
    part_type: str = "flower"
    part_index: Optional[int] = None

    def distance_to_target(self) -> float:
        return math.hypot(self.target_x - self.x, self.target_y - self.y)

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)


@dataclass(frozen=True)
class ParticleSnapshot:
    """Read-only view handed to the renderer."""
    x: float
    y: float
    alpha: float
    size: float
    color: str
    life: float


@dataclass
class ParticleConfig:
    """Physics constants, per 60 fps reference frame unless noted."""
    gravity: float = 0.5
    alpha_decay_rate: float = 0.3       # per second
    alpha_threshold: float = 0.3        # mean alpha that triggers converge
    convergence_speed: float = 4.0
    max_speed_multiplier: float = 4.0
    arrival_threshold: float = 5.0      # px
    reference_distance: float = 300.0   # px, distance at full convergence speed
    proximity_radius: float = 200.0     # px, alpha recovers inside this radius
    alpha_recovery_rate: float = 0.3    # per second
    reference_fps: float = 60.0

    # Emission
    min_base_speed: float = 1.0
    max_base_speed: float = 5.0
    speed_variation: float = 0.2        # +/- fraction
    vertical_bias_strength: float = 0.5
    bias_min_pitch: float = 200.0
    bias_max_pitch: float = 800.0
    size_range: Tuple[float, float] = (2.0, 4.0)
    life_range: Tuple[float, float] = (3.0, 5.0)
    default_color: str = "rgb(255, 200, 220)"


class ParticlePool:
    """
    Owned particle collection with O(1) swap-remove.

    Removal moves the last particle into the freed slot, so indices of
    the remaining particles change only for the one moved.
    """

    def __init__(self):
        self._items: List[Particle] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Particle]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Particle:
        return self._items[index]

    def append(self, particle: Particle) -> int:
        self._items.append(particle)
        return len(self._items) - 1

    def extend(self, particles: Iterable[Particle]) -> None:
        self._items.extend(particles)

    def swap_remove(self, index: int) -> Particle:
        """Remove and return the particle at index in constant time."""
        last = self._items.pop()
        if index == len(self._items):
            return last
        removed = self._items[index]
        self._items[index] = last
        return removed

    def retain(self, keep: Callable[[Particle], bool]) -> int:
        """Drop every particle failing `keep`; returns how many were dropped."""
        dropped = 0
        i = 0
        while i < len(self._items):
            if keep(self._items[i]):
                i += 1
            else:
                self.swap_remove(i)
                dropped += 1
        return dropped

    def clear(self) -> None:
        self._items.clear()

    def as_tuple(self) -> Tuple[Particle, ...]:
        return tuple(self._items)


PointLike = Union[ShapePoint, Tuple[float, float]]


class ParticleSimulation:
    """
    Scatter/converge particle engine.

    Each instance owns its particles exclusively; randomness comes from
    the injected generator so runs are reproducible.
    """

    def __init__(
        self,
        config: Optional[ParticleConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.cfg = config or ParticleConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self._pool = ParticlePool()
        self._phase = ParticlePhase.SCATTER

    def __len__(self) -> int:
        return len(self._pool)

    @property
    def phase(self) -> ParticlePhase:
        return self._phase

    @property
    def particles(self) -> Tuple[Particle, ...]:
        return self._pool.as_tuple()

    def _as_shape_point(self, point: PointLike) -> ShapePoint:
        if isinstance(point, ShapePoint):
            return point
        x, y = point[0], point[1]
        return ShapePoint(float(x), float(y), self.cfg.default_color)

    def base_speed(self, volume: float) -> float:
        """Emission speed before per-particle variation."""
        v = min(1.0, max(0.0, volume / 100.0))
        return self.cfg.min_base_speed + v * (self.cfg.max_base_speed - self.cfg.min_base_speed)

    def vertical_bias(self, pitch: float) -> float:
        """Pitch mapped to [-1, 1]: low voices push down, high voices up."""
        span = self.cfg.bias_max_pitch - self.cfg.bias_min_pitch
        normalized = min(1.0, max(0.0, (pitch - self.cfg.bias_min_pitch) / span))
        return (normalized - 0.5) * 2.0

    def generate(
        self,
        points: Sequence[PointLike],
        seed_position: Tuple[float, float],
        volume: float,
        pitch: float,
        now: float,
    ) -> None:
        """
        Replace all particles with one per shape point, in the scatter phase.

        Args:
            points: ShapePoints or (x, y) pairs.
            seed_position: Convergence target.
            volume: Volume (0-100) at the moment of scattering.
            pitch: Pitch (Hz) at the moment of scattering.
            now: Timestamp recorded as birth_time.
        """
        cfg = self.cfg
        self._pool.clear()
        self._phase = ParticlePhase.SCATTER

        base_speed = self.base_speed(volume)
        bias = self.vertical_bias(pitch)
        target_x, target_y = seed_position

        for raw in points:
            point = self._as_shape_point(raw)
            angle = self.rng.uniform(0.0, 2.0 * math.pi)
            speed = base_speed * self.rng.uniform(1.0 - cfg.speed_variation, 1.0 + cfg.speed_variation)

            vx = math.cos(angle) * speed
            vy = math.sin(angle) * speed + bias * speed * cfg.vertical_bias_strength

            self._pool.append(Particle(
                x=point.x,
                y=point.y,
                vx=vx,
                vy=vy,
                color=point.color,
                alpha=1.0,
                size=float(self.rng.uniform(*cfg.size_range)),
                target_x=target_x,
                target_y=target_y,
                life=1.0,
                max_life=float(self.rng.uniform(*cfg.life_range)),
                birth_time=now,
                part_type=point.part_type,
                part_index=point.part_index,
            ))

        logger.debug(
            "Generated %d particles (base speed %.2f, bias %.2f)", len(self._pool), base_speed, bias
        )

    def update(self, dt: float, now: float) -> None:
        """Advance the current phase by dt seconds."""
        if len(self._pool) == 0:
            return
        if self._phase is ParticlePhase.SCATTER:
            self._update_scatter(dt)
        else:
            self._update_converge(dt)

    def _update_scatter(self, dt: float) -> None:
        cfg = self.cfg
        frames = dt * cfg.reference_fps

        for p in self._pool:
            p.vy += cfg.gravity * frames
            p.x += p.vx * frames
            p.y += p.vy * frames

            p.alpha = max(0.0, p.alpha - cfg.alpha_decay_rate * dt)
            p.life = max(0.0, p.life - dt / p.max_life)

        if self.mean_alpha() < cfg.alpha_threshold:
            self._phase = ParticlePhase.CONVERGE
            logger.debug("Particles converging (%d)", len(self._pool))

    def _update_converge(self, dt: float) -> None:
        cfg = self.cfg
        frames = dt * cfg.reference_fps

        for p in self._pool:
            dx = p.target_x - p.x
            dy = p.target_y - p.y
            distance = math.hypot(dx, dy)

            if distance > cfg.arrival_threshold:
                ratio = min(distance / cfg.reference_distance, 1.0)
                eased = 1.0 - (1.0 - ratio) ** 3  # ease-out cubic
                multiplier = 1.0 + eased * (cfg.max_speed_multiplier - 1.0)
                speed = cfg.convergence_speed * multiplier

                dir_x = dx / distance
                dir_y = dy / distance

                # Displacement capped at the remaining distance: no overshoot
                move = min(speed * frames, distance)
                p.x += dir_x * move
                p.y += dir_y * move

                # Display-only velocity
                p.vx = dir_x * speed * cfg.reference_fps
                p.vy = dir_y * speed * cfg.reference_fps
            else:
                p.vx = 0.0
                p.vy = 0.0

            proximity = max(0.0, 1.0 - distance / cfg.proximity_radius)
            p.alpha = min(1.0, p.alpha + cfg.alpha_recovery_rate * dt * proximity)

    def mean_alpha(self) -> float:
        if len(self._pool) == 0:
            return 0.0
        return sum(p.alpha for p in self._pool) / len(self._pool)

    def all_particles_arrived(self) -> bool:
        """True once converging and every particle is within the arrival threshold."""
        if self._phase is not ParticlePhase.CONVERGE:
            return False
        threshold = self.cfg.arrival_threshold
        return all(p.distance_to_target() <= threshold for p in self._pool)

    def discard_where(self, predicate: Callable[[Particle], bool]) -> int:
        """Remove particles matching predicate; returns how many were removed."""
        return self._pool.retain(lambda p: not predicate(p))

    def snapshot(self) -> List[ParticleSnapshot]:
        return [
            ParticleSnapshot(p.x, p.y, p.alpha, p.size, p.color, p.life)
            for p in self._pool
        ]

    def reset(self) -> None:
        self._pool.clear()
        self._phase = ParticlePhase.SCATTER
