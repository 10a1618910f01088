from .base import ReconCheck, CheckRegistry, registry
from .builtin import CompletenessCheck, CoverageCheck, DisjointnessCheck, KeyConsistencyCheck

registry.register(DisjointnessCheck)
registry.register(CompletenessCheck)
registry.register(CoverageCheck)
registry.register(KeyConsistencyCheck)

__all__ = [
    "CheckRegistry",
    "CompletenessCheck",
    "CoverageCheck",
    "DisjointnessCheck",
    "KeyConsistencyCheck",
    "ReconCheck",
    "registry",
]
