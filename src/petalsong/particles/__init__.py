"""Scatter particle simulation."""

from petalsong.particles.system import (
    Particle,
    ParticleConfig,
    ParticlePhase,
    ParticlePool,
    ParticleSimulation,
    ParticleSnapshot,
)

__all__ = [
    "Particle",
    "ParticleConfig",
    "ParticlePhase",
    "ParticlePool",
    "ParticleSimulation",
    "ParticleSnapshot",
]
