"""Configuration objects for hole filling and patch refinement."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Union

from .constants import DENSITY_FACTOR

FlipPredicate = Union[str, Callable[..., bool]]


@dataclass
class RefineConfig:
    """Parameters of the density-driven patch refinement.

    Attributes
    ----------
    density_factor : float
        Multiplier applied to centroid-to-vertex distances in the split test.
    flip_predicate : str or callable
        ``'delaunay'`` flips an edge only when the two angles opposite to it
        sum to more than pi; ``'always'`` flips every flippable edge; a
        callable ``(table, corner) -> bool`` may be supplied instead.
    max_iterations : int
        Upper bound on split passes.
    max_relax_sweeps : int
        Upper bound on global flip sweeps after each split pass.
    """
    density_factor: float = DENSITY_FACTOR
    flip_predicate: FlipPredicate = 'delaunay'
    max_iterations: int = 64
    max_relax_sweeps: int = 100


@dataclass
class FillConfig:
    refine: RefineConfig = field(default_factory=RefineConfig)
    refine_enabled: bool = True
    # 'raise' aborts on the first failing hole, 'skip' logs it and moves on
    on_error: str = 'raise'


__all__ = ['RefineConfig', 'FillConfig', 'FlipPredicate']
