"""
Per-tick simulation pipeline.

Orchestrates the complete flow of one animation tick: signal reading ->
smoothing -> stem growth -> growth state -> animation parameters ->
scatter particles -> bloom geometry. The reading is taken once and every
component sees the same values.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from petalsong.core.analyzer import AnalyzerConfig, AudioFrame
from petalsong.core.polisher import SignalPolisher, SignalState
from petalsong.geometry.rose import RoseCurve, RoseCurvePoint
from petalsong.geometry.shapes import (
    ShapePoint,
    flower_points,
    leaf_points,
    stem_leaves,
    stem_points,
)
from petalsong.growth.controller import GrowthParameterController, GrowthParameters
from petalsong.growth.progress import StemGrowth, StemGrowthConfig
from petalsong.growth.state_machine import GrowthState, GrowthStateMachine, GrowthThresholds
from petalsong.particles.system import (
    ParticleConfig,
    ParticlePhase,
    ParticleSimulation,
    ParticleSnapshot,
    PointLike,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Configuration for a complete flower simulation."""
    fps: int = 60
    seed_position: Tuple[float, float] = (400.0, 450.0)

    # Smoothing
    smoothing: float = 0.05
    fallback_pitch: float = 440.0

    # Parameters
    base_pitch: float = 300.0

    # Bloom geometry
    bloom_radius: float = 60.0
    curve_segments: int = 72
    min_k: float = 3.0
    max_k: float = 7.0
    min_pitch: float = 200.0
    max_pitch: float = 800.0

    # Leaves scattered with the plant
    leaf_start_height: float = 48.0
    leaf_size: float = 60.0

    # Components
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    thresholds: GrowthThresholds = field(default_factory=GrowthThresholds)
    stem: StemGrowthConfig = field(default_factory=StemGrowthConfig)
    particles: ParticleConfig = field(default_factory=ParticleConfig)


@dataclass(frozen=True)
class TickState:
    """Frame-to-frame state carried by the caller between ticks."""
    signal: SignalState
    stem_height: float = 0.0

    @classmethod
    def initial(cls) -> "TickState":
        return cls(signal=SignalState.initial(), stem_height=0.0)


@dataclass(frozen=True)
class TickResult:
    """Everything the renderer needs to draw one frame."""
    time: float
    raw: AudioFrame
    signal: SignalState
    growth_state: GrowthState
    growth_progress: float
    parameters: GrowthParameters
    rose_k: float
    particle_phase: ParticlePhase
    particles: List[ParticleSnapshot]
    cycle_completed: bool = False


ShapeProvider = Callable[[float, float], Sequence[PointLike]]


class FlowerPipeline:
    """
    Complete signal-to-frame simulation.

    Owns the state machine and particle simulation; frame-to-frame
    smoothing and stem height travel in the TickState.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        seed: Optional[int] = None,
        shape_provider: Optional[ShapeProvider] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Simulation configuration.
            seed: Seed for the particle random source.
            shape_provider: Callable (stem_height, rose_k) -> points used to
                seed the scatter. Defaults to the rose outline plus stem.
        """
        self.cfg = config or SimulationConfig()

        self.polisher = SignalPolisher(
            smoothing=self.cfg.smoothing,
            fallback_pitch=self.cfg.fallback_pitch,
        )
        self.growth = StemGrowth(self.cfg.stem)
        self.state_machine = GrowthStateMachine(self.cfg.thresholds)
        self.controller = GrowthParameterController(base_pitch=self.cfg.base_pitch)
        self.particles = ParticleSimulation(self.cfg.particles, seed=seed)
        self.rose = RoseCurve()
        self.shape_provider = shape_provider or self.default_shapes

    def default_shapes(self, stem_height: float, rose_k: float) -> List[ShapePoint]:
        """Rose outline at the stem tip, points along the stem and its leaves."""
        cfg = self.cfg
        sx, sy = cfg.seed_position
        head = (sx, sy - stem_height)
        leaves = stem_leaves(
            cfg.seed_position,
            stem_height,
            cfg.stem.max_length,
            start_height=cfg.leaf_start_height,
            size=cfg.leaf_size,
        )
        return (
            flower_points(head, cfg.bloom_radius, rose_k, cfg.curve_segments, rose=self.rose)
            + stem_points(cfg.seed_position, stem_height)
            + leaf_points(leaves)
        )

    def rose_k(self, pitch: float) -> float:
        return self.rose.calculate_k_from_pitch(
            pitch,
            min_k=self.cfg.min_k,
            max_k=self.cfg.max_k,
            min_pitch=self.cfg.min_pitch,
            max_pitch=self.cfg.max_pitch,
        )

    def bloom_curve(self, pitch: float) -> List[RoseCurvePoint]:
        """Bloom outline for the given pitch."""
        return self.rose.calculate_curve(
            self.cfg.bloom_radius, self.rose_k(pitch), self.cfg.curve_segments
        )

    def tick(
        self,
        state: TickState,
        frame: AudioFrame,
        dt: float,
        now: float,
        pitch_change: float = 0.0,
    ) -> Tuple[TickState, TickResult]:
        """
        Advance the simulation by one tick.

        Args:
            state: State returned by the previous tick.
            frame: The single reading taken for this tick.
            dt: Seconds since the previous tick.
            now: Current time in seconds.
            pitch_change: Raw sway driver for this tick.

        Returns:
            (next TickState, TickResult for this frame)
        """
        signal = self.polisher.smooth(state.signal, frame, pitch_change)
        smoothed = self.polisher.as_frame(signal)
        volume, pitch = smoothed.volume, smoothed.pitch

        previous = self.state_machine.state
        stem_height = state.stem_height
        if previous in (GrowthState.SPROUT, GrowthState.STEM):
            stem_height = self.growth.advance(stem_height, volume, dt)

        growth_state = self.state_machine.update(volume, stem_height)
        parameters = self.controller.update(volume, pitch, dt)
        rose_k = self.rose_k(pitch)

        cycle_completed = False
        if growth_state is GrowthState.SCATTER:
            if previous is not GrowthState.SCATTER:
                points = self.shape_provider(stem_height, rose_k)
                self.particles.generate(points, self.cfg.seed_position, volume, pitch, now)
                logger.info("Scatter started with %d particles", len(self.particles))
            else:
                self.particles.update(dt, now)

            if self.particles.all_particles_arrived():
                self.state_machine.reset()
                self.particles.reset()
                stem_height = 0.0
                growth_state = self.state_machine.state
                cycle_completed = True
                logger.info("Cycle complete; back to seed")

        result = TickResult(
            time=now,
            raw=frame,
            signal=signal,
            growth_state=growth_state,
            growth_progress=stem_height,
            parameters=parameters,
            rose_k=rose_k,
            particle_phase=self.particles.phase,
            particles=self.particles.snapshot(),
            cycle_completed=cycle_completed,
        )
        return TickState(signal=signal, stem_height=stem_height), result

    def run(
        self,
        frame_source: Callable[[float], AudioFrame],
        n_frames: int,
        pitch_change_source: Optional[Callable[[float], float]] = None,
        state: Optional[TickState] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> List[TickResult]:
        """
        Run a fixed number of ticks at the configured fps.

        Args:
            frame_source: Called with the current time in ms, returns the reading.
            n_frames: Number of ticks.
            pitch_change_source: Optional sway driver, called with time in ms.
            state: Starting state (default: TickState.initial()).
            progress_callback: Optional callback(current_frame, total_frames).

        Returns:
            One TickResult per tick.
        """
        state = state or TickState.initial()
        dt = 1.0 / self.cfg.fps
        results = []

        for i in range(n_frames):
            now = i * dt
            now_ms = now * 1000.0
            frame = frame_source(now_ms)
            change = pitch_change_source(now_ms) if pitch_change_source else 0.0
            state, result = self.tick(state, frame, dt, now, change)
            results.append(result)
            if progress_callback:
                progress_callback(i + 1, n_frames)

        return results

    def reset(self, state: Optional[TickState] = None) -> TickState:
        """
        Drop back to the seed with no particles.

        Args:
            state: Current tick state. Its smoothed signal is kept.

        Returns:
            The TickState to pass to the next tick, with the stem cleared.
        """
        self.state_machine.reset()
        self.particles.reset()
        if state is None:
            return TickState.initial()
        return TickState(signal=state.signal, stem_height=0.0)
