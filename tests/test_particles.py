"""Tests for the ParticleSimulation module."""

import math

import pytest

from petalsong.geometry.shapes import ShapePoint
from petalsong.particles.system import (
    Particle,
    ParticleConfig,
    ParticlePhase,
    ParticlePool,
    ParticleSimulation,
)

DT = 1 / 60
SEED_POSITION = (400.0, 450.0)


def still_config(**overrides) -> ParticleConfig:
    """Config whose particles are emitted at rest and do not fall."""
    params = dict(min_base_speed=0.0, max_base_speed=0.0, gravity=0.0)
    params.update(overrides)
    return ParticleConfig(**params)


def run_until_converging(sim: ParticleSimulation, limit: int = 1000) -> int:
    ticks = 0
    while sim.phase is ParticlePhase.SCATTER and ticks < limit:
        sim.update(DT, ticks * DT)
        ticks += 1
    return ticks


def make_particle(x: float) -> Particle:
    return Particle(
        x=x, y=0.0, vx=0.0, vy=0.0, color="white", alpha=1.0, size=2.0,
        target_x=0.0, target_y=0.0, life=1.0, max_life=3.0, birth_time=0.0,
    )


class TestParticlePool:
    """Tests for the swap-remove pool."""

    def test_swap_remove_moves_last(self):
        pool = ParticlePool()
        pool.extend(make_particle(float(i)) for i in range(4))

        removed = pool.swap_remove(1)

        assert removed.x == 1.0
        assert [p.x for p in pool] == [0.0, 3.0, 2.0]

    def test_swap_remove_last(self):
        pool = ParticlePool()
        pool.extend(make_particle(float(i)) for i in range(2))

        assert pool.swap_remove(1).x == 1.0
        assert len(pool) == 1

    def test_retain(self):
        pool = ParticlePool()
        pool.extend(make_particle(float(i)) for i in range(10))

        dropped = pool.retain(lambda p: p.x % 2 == 0)

        assert dropped == 5
        assert sorted(p.x for p in pool) == [0.0, 2.0, 4.0, 6.0, 8.0]


class TestGenerate:
    """Tests for particle emission."""

    def test_one_particle_per_point(self):
        sim = ParticleSimulation(seed=1)
        points = [ShapePoint(float(i), 100.0, "red", "stem") for i in range(12)]

        sim.generate(points, SEED_POSITION, volume=50.0, pitch=400.0, now=2.0)

        assert len(sim) == 12
        assert sim.phase is ParticlePhase.SCATTER
        for p, point in zip(sim.particles, points):
            assert (p.x, p.y) == (point.x, point.y)
            assert p.color == "red"
            assert p.part_type == "stem"
            assert p.alpha == 1.0
            assert p.life == 1.0
            assert (p.target_x, p.target_y) == SEED_POSITION
            assert p.birth_time == 2.0
            assert 2.0 <= p.size <= 4.0
            assert 3.0 <= p.max_life <= 5.0

    def test_accepts_plain_pairs(self):
        sim = ParticleSimulation(seed=1)
        sim.generate([(1.0, 2.0), (3.0, 4.0)], SEED_POSITION, 50.0, 400.0, 0.0)

        assert len(sim) == 2
        assert sim.particles[0].color == ParticleConfig().default_color

    def test_replaces_existing(self):
        sim = ParticleSimulation(seed=1)
        sim.generate([(0.0, 0.0)] * 5, SEED_POSITION, 50.0, 400.0, 0.0)
        sim.generate([(0.0, 0.0)] * 3, SEED_POSITION, 50.0, 400.0, 0.0)

        assert len(sim) == 3

    def test_empty_points(self):
        sim = ParticleSimulation(seed=1)
        sim.generate([], SEED_POSITION, 50.0, 400.0, 0.0)
        sim.update(DT, 0.0)

        assert len(sim) == 0
        assert sim.phase is ParticlePhase.SCATTER
        assert not sim.all_particles_arrived()

    @pytest.mark.parametrize("volume,expected", [(0.0, 1.0), (50.0, 3.0), (100.0, 5.0), (300.0, 5.0)])
    def test_base_speed(self, volume, expected):
        assert ParticleSimulation().base_speed(volume) == pytest.approx(expected)

    @pytest.mark.parametrize("pitch,expected", [(100.0, -1.0), (500.0, 0.0), (800.0, 1.0)])
    def test_vertical_bias(self, pitch, expected):
        assert ParticleSimulation().vertical_bias(pitch) == pytest.approx(expected)

    def test_louder_scatters_faster(self):
        points = [(400.0, 200.0)] * 200
        quiet = ParticleSimulation(seed=3)
        loud = ParticleSimulation(seed=3)
        quiet.generate(points, SEED_POSITION, 0.0, 500.0, 0.0)
        loud.generate(points, SEED_POSITION, 100.0, 500.0, 0.0)

        mean = lambda sim: sum(p.speed for p in sim.particles) / len(sim)
        assert mean(loud) > mean(quiet)

    def test_speed_variation_bounds(self):
        sim = ParticleSimulation(seed=5)
        sim.generate([(0.0, 0.0)] * 100, SEED_POSITION, 50.0, 500.0, 0.0)

        for p in sim.particles:
            assert 3.0 * 0.8 - 1e-9 <= p.speed <= 3.0 * 1.2 + 1e-9

    def test_seed_reproducible(self):
        a = ParticleSimulation(seed=11)
        b = ParticleSimulation(seed=11)
        a.generate([(0.0, 0.0)] * 10, SEED_POSITION, 50.0, 400.0, 0.0)
        b.generate([(0.0, 0.0)] * 10, SEED_POSITION, 50.0, 400.0, 0.0)

        assert [(p.vx, p.vy) for p in a.particles] == [(p.vx, p.vy) for p in b.particles]


class TestScatterPhase:
    """Tests for the scatter phase."""

    def test_gravity_pulls_down(self):
        sim = ParticleSimulation(config=still_config(gravity=0.5), seed=1)
        sim.generate([(100.0, 100.0)], SEED_POSITION, 0.0, 500.0, 0.0)

        sim.update(DT, 0.0)

        p = sim.particles[0]
        assert p.vy == pytest.approx(0.5)
        assert p.y == pytest.approx(100.5)

    def test_alpha_and_life_decay(self):
        sim = ParticleSimulation(config=still_config(), seed=1)
        sim.generate([(100.0, 100.0)], SEED_POSITION, 0.0, 500.0, 0.0)

        sim.update(1.0, 1.0)

        p = sim.particles[0]
        assert p.alpha == pytest.approx(0.7)
        assert p.life == pytest.approx(1.0 - 1.0 / p.max_life)

    def test_frame_rate_independent(self):
        """Two half ticks move a particle as far as one full tick (no gravity)."""
        one = ParticleSimulation(config=ParticleConfig(gravity=0.0), seed=2)
        two = ParticleSimulation(config=ParticleConfig(gravity=0.0), seed=2)
        one.generate([(0.0, 0.0)], SEED_POSITION, 60.0, 400.0, 0.0)
        two.generate([(0.0, 0.0)], SEED_POSITION, 60.0, 400.0, 0.0)

        one.update(DT, 0.0)
        two.update(DT / 2, 0.0)
        two.update(DT / 2, 0.0)

        assert one.particles[0].x == pytest.approx(two.particles[0].x)
        assert one.particles[0].y == pytest.approx(two.particles[0].y)

    def test_switches_to_converge_below_alpha_threshold(self):
        sim = ParticleSimulation(config=still_config(), seed=1)
        sim.generate([(100.0, 100.0)] * 5, SEED_POSITION, 0.0, 500.0, 0.0)

        ticks = run_until_converging(sim)

        assert sim.phase is ParticlePhase.CONVERGE
        assert sim.mean_alpha() < 0.3
        # 0.7 alpha at 0.3/s
        assert ticks == pytest.approx(140, abs=2)


class TestConvergePhase:
    """Tests for the converge phase."""

    def test_farther_particles_move_faster(self):
        sim = ParticleSimulation(config=still_config(), seed=1)
        near = (SEED_POSITION[0] + 50.0, SEED_POSITION[1])
        far = (SEED_POSITION[0] + 200.0, SEED_POSITION[1])
        sim.generate([near, far], SEED_POSITION, 0.0, 500.0, 0.0)
        run_until_converging(sim)

        before = [p.distance_to_target() for p in sim.particles]
        sim.update(DT, 0.0)
        after = [p.distance_to_target() for p in sim.particles]

        assert before[0] - after[0] < before[1] - after[1]
        assert sim.particles[0].speed < sim.particles[1].speed

    def test_distance_never_increases(self):
        sim = ParticleSimulation(seed=4)
        sim.generate(
            [(100.0 + 20 * i, 50.0 + 7 * i) for i in range(20)],
            SEED_POSITION, 90.0, 700.0, 0.0,
        )
        run_until_converging(sim)

        previous = [p.distance_to_target() for p in sim.particles]
        for _ in range(120):
            sim.update(DT, 0.0)
            current = [p.distance_to_target() for p in sim.particles]
            assert all(c <= p + 1e-9 for c, p in zip(current, previous))
            previous = current

    def test_arrival(self):
        sim = ParticleSimulation(seed=6)
        sim.generate([(100.0, 100.0), (700.0, 80.0), (420.0, 440.0)], SEED_POSITION, 80.0, 300.0, 0.0)
        run_until_converging(sim)

        ticks = 0
        while not sim.all_particles_arrived() and ticks < 2000:
            sim.update(DT, 0.0)
            ticks += 1

        assert sim.all_particles_arrived()
        for p in sim.particles:
            assert p.distance_to_target() <= 5.0

    def test_alpha_recovers_near_seed(self):
        sim = ParticleSimulation(config=still_config(), seed=1)
        sim.generate([(SEED_POSITION[0] + 100.0, SEED_POSITION[1])], SEED_POSITION, 0.0, 500.0, 0.0)
        run_until_converging(sim)
        faded = sim.mean_alpha()

        for _ in range(30):
            sim.update(DT, 0.0)

        assert sim.mean_alpha() > faded

    def test_not_arrived_while_scattering(self):
        sim = ParticleSimulation(config=still_config(), seed=1)
        sim.generate([SEED_POSITION], SEED_POSITION, 0.0, 500.0, 0.0)

        assert not sim.all_particles_arrived()


class TestLifecycle:

    def test_snapshot(self):
        sim = ParticleSimulation(seed=1)
        sim.generate([ShapePoint(1.0, 2.0, "blue")], SEED_POSITION, 50.0, 400.0, 0.0)

        snap = sim.snapshot()[0]

        assert (snap.x, snap.y, snap.alpha, snap.color, snap.life) == (1.0, 2.0, 1.0, "blue", 1.0)

    def test_discard_where(self):
        sim = ParticleSimulation(seed=1)
        sim.generate([ShapePoint(float(i), 0.0, part_type="leaf" if i % 2 else "stem") for i in range(6)],
                     SEED_POSITION, 50.0, 400.0, 0.0)

        removed = sim.discard_where(lambda p: p.part_type == "leaf")

        assert removed == 3
        assert all(p.part_type == "stem" for p in sim.particles)

    def test_reset(self):
        sim = ParticleSimulation(config=still_config(), seed=1)
        sim.generate([(0.0, 0.0)] * 3, SEED_POSITION, 0.0, 500.0, 0.0)
        run_until_converging(sim)

        sim.reset()

        assert len(sim) == 0
        assert sim.phase is ParticlePhase.SCATTER
        assert math.isclose(sim.mean_alpha(), 0.0)
