"""Audio-reactive growth simulation core for the singing flower."""

from petalsong.core.analyzer import AudioFrame, SignalAnalyzer
from petalsong.geometry.rose import RoseCurve
from petalsong.growth.controller import GrowthParameterController
from petalsong.growth.state_machine import GrowthState, GrowthStateMachine
from petalsong.particles.system import ParticleSimulation
from petalsong.pipeline import FlowerPipeline, SimulationConfig

__version__ = "0.1.0"
__all__ = [
    "AudioFrame",
    "SignalAnalyzer",
    "RoseCurve",
    "GrowthParameterController",
    "GrowthState",
    "GrowthStateMachine",
    "ParticleSimulation",
    "FlowerPipeline",
    "SimulationConfig",
]
