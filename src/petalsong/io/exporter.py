"""
Timeline serialization module.

Exports per-tick simulation results to a JSON timeline so a renderer (or
a test) can replay a session without running the simulation.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence, Union

from petalsong.pipeline import TickResult


@dataclass
class TimelineMetadata:
    """Metadata header for the timeline."""

    fps: int
    n_frames: int
    duration: float
    schema_version: str = "1.0"


class TimelineExporter:
    """
    Exports TickResults to a JSON timeline.

    Each frame carries the raw and smoothed drivers, the growth state,
    the animation parameters and, optionally, the particle snapshot.
    """

    def __init__(self, precision: int = 4, include_particles: bool = False):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
            include_particles: Whether to serialize every particle per frame.
        """
        self.precision = precision
        self.include_particles = include_particles

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _build_frame(self, index: int, result: TickResult) -> dict[str, Any]:
        params = result.parameters
        frame: dict[str, Any] = {
            "frame_index": index,
            "time": self._round(result.time),
            "raw_volume": self._round(result.raw.volume),
            "raw_pitch": self._round(result.raw.pitch),
            "volume": self._round(result.signal.volume),
            "pitch": self._round(result.signal.pitch),
            "pitch_change": self._round(result.signal.pitch_change),
            "growth_state": result.growth_state.value,
            "growth_progress": self._round(result.growth_progress),
            "growth_speed": self._round(params.growth_speed),
            "sway_amount": self._round(params.sway_amount),
            "color_hue": self._round(params.color_hue),
            "color_saturation": self._round(params.color_saturation),
            "color_lightness": self._round(params.color_lightness),
            "rose_k": self._round(result.rose_k),
            "particle_phase": result.particle_phase.value,
            "particle_count": len(result.particles),
            "cycle_completed": result.cycle_completed,
        }

        if self.include_particles:
            frame["particles"] = [
                [self._round(p.x), self._round(p.y), self._round(p.alpha),
                 self._round(p.size), p.color, self._round(p.life)]
                for p in result.particles
            ]

        return frame

    def build_timeline(self, results: Sequence[TickResult], fps: int) -> dict[str, Any]:
        """
        Build the complete timeline dictionary.

        Args:
            results: One TickResult per tick, in order.
            fps: Tick rate the results were produced at.

        Returns:
            Timeline dictionary ready for serialization.
        """
        metadata = TimelineMetadata(
            fps=fps,
            n_frames=len(results),
            duration=self._round(len(results) / fps) if fps else 0.0,
        )

        return {
            "metadata": {
                "fps": metadata.fps,
                "n_frames": metadata.n_frames,
                "duration": metadata.duration,
                "schema_version": metadata.schema_version,
            },
            "frames": [self._build_frame(i, r) for i, r in enumerate(results)],
        }

    def export_json(
        self,
        results: Sequence[TickResult],
        fps: int,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Export the timeline to a JSON file.

        Returns:
            Path to written file.
        """
        timeline = self.build_timeline(results, fps)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(timeline, f, indent=indent)

        return output_path
