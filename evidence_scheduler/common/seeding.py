from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SeedContext:
    """Seed actually used for a run; reported so a forecast can be replayed."""

    seed: int
    generated: bool


def resolve_seed(seed: int | None) -> SeedContext:
    if seed is not None:
        return SeedContext(seed=int(seed), generated=False)
    # Draw a fresh seed from OS entropy but keep it, so the run is reproducible.
    entropy = np.random.SeedSequence().entropy
    return SeedContext(seed=int(entropy) % (2**63), generated=True)


def make_rng(seed: int | None) -> tuple[np.random.Generator, SeedContext]:
    """Create the single random stream used by one simulation run."""
    ctx = resolve_seed(seed)
    return np.random.default_rng(ctx.seed), ctx
