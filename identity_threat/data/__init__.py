"""Synthetic identity threat dataset generation."""

from .generation import (
    GenerationConfig,
    generate_ar1,
    generate_cyclical,
    generate_events,
    generate_identity_threat_data,
)

__all__ = [
    "GenerationConfig",
    "generate_ar1",
    "generate_cyclical",
    "generate_events",
    "generate_identity_threat_data",
]
