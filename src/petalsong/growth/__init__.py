"""Growth stages and parameter mapping."""

from petalsong.growth.controller import GrowthParameterController, GrowthParameters
from petalsong.growth.progress import StemGrowth, StemGrowthConfig
from petalsong.growth.state_machine import GrowthState, GrowthStateMachine, GrowthThresholds

__all__ = [
    "GrowthParameterController",
    "GrowthParameters",
    "StemGrowth",
    "StemGrowthConfig",
    "GrowthState",
    "GrowthStateMachine",
    "GrowthThresholds",
]
