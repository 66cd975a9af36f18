"""
Codebook initializers.

An initializer receives every time surface a layer computed over its
initialization corpus together with the number of prototypes the layer's
clusterer expects, and returns the starting codebook, a tensor of shape
``(n_clusters, *surface.shape)``.

Available strategies:
    - random:   n_clusters distinct surfaces drawn from the data
    - uniform:  prototypes drawn uniformly between the data min and max
    - plusplus: k-means++ seeding, each new prototype drawn with probability
                proportional to its squared distance from the closest one

Example:
    >>> from hotsnet.learning.initializers import get_initializer
    >>>
    >>> init = get_initializer("plusplus", seed=0)
    >>> prototypes = init(surfaces, 8)
    >>> prototypes.shape
    torch.Size([8, 11, 11])
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence

import torch

from ..core.interfaces import ClustererInitializerType


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class InitializerError(ValueError):
    """Raised when a codebook cannot be initialized from the given data."""
    pass


# =============================================================================
# HELPERS
# =============================================================================


def _make_generator(seed: Optional[int]) -> torch.Generator:
    generator = torch.Generator()
    if seed is None:
        generator.seed()
    else:
        generator.manual_seed(seed)
    return generator


def _stack_surfaces(surfaces: Sequence[torch.Tensor], n_clusters: int) -> torch.Tensor:
    """Validate the inputs and stack surfaces into a float tensor (N, ...)."""
    if isinstance(n_clusters, bool) or not isinstance(n_clusters, int):
        raise TypeError(f"n_clusters must be an integer, got {type(n_clusters).__name__}")
    if n_clusters <= 0:
        raise InitializerError(f"n_clusters must be positive, got {n_clusters}")
    if len(surfaces) == 0:
        raise InitializerError("Cannot initialize prototypes without time surfaces")
    if len(surfaces) < n_clusters:
        raise InitializerError(
            f"Need at least {n_clusters} time surfaces, got {len(surfaces)}"
        )

    try:
        data = torch.stack([s.detach() for s in surfaces])
    except RuntimeError as e:
        raise InitializerError(f"Time surfaces must share the same shape: {e}") from e

    return data if data.is_floating_point() else data.float()


# =============================================================================
# INITIALIZERS
# =============================================================================


def random_initializer(seed: Optional[int] = None) -> ClustererInitializerType:
    """Pick n_clusters distinct surfaces at random."""
    generator = _make_generator(seed)

    def initialize(surfaces: Sequence[torch.Tensor], n_clusters: int) -> torch.Tensor:
        data = _stack_surfaces(surfaces, n_clusters)
        idx = torch.randperm(data.shape[0], generator=generator)[:n_clusters]
        return data[idx].clone()

    return initialize


def uniform_initializer(seed: Optional[int] = None) -> ClustererInitializerType:
    """Draw prototypes uniformly between the minimum and maximum of the data."""
    generator = _make_generator(seed)

    def initialize(surfaces: Sequence[torch.Tensor], n_clusters: int) -> torch.Tensor:
        data = _stack_surfaces(surfaces, n_clusters)
        low, high = data.min(), data.max()
        noise = torch.rand((n_clusters,) + tuple(data.shape[1:]), generator=generator,
                           dtype=data.dtype)
        return low + noise * (high - low)

    return initialize


def plusplus_initializer(seed: Optional[int] = None) -> ClustererInitializerType:
    """
    k-means++ seeding.

    The first prototype is a random surface; every following one is drawn
    with probability proportional to the squared distance D(x)^2 from the
    closest prototype chosen so far. When every remaining surface coincides
    with a prototype the draw falls back to uniform.
    """
    generator = _make_generator(seed)

    def initialize(surfaces: Sequence[torch.Tensor], n_clusters: int) -> torch.Tensor:
        data = _stack_surfaces(surfaces, n_clusters)
        flat = data.reshape(data.shape[0], -1)

        first = int(torch.randint(flat.shape[0], (1,), generator=generator).item())
        chosen = [first]
        min_d2 = ((flat - flat[first]) ** 2).sum(dim=1)

        for _ in range(1, n_clusters):
            total = min_d2.sum()
            if total > 0:
                weights = min_d2 / total
            else:
                weights = torch.ones_like(min_d2)
            nxt = int(torch.multinomial(weights, 1, generator=generator).item())
            chosen.append(nxt)
            min_d2 = torch.minimum(min_d2, ((flat - flat[nxt]) ** 2).sum(dim=1))

        return data[chosen].clone()

    return initialize


_INITIALIZERS: Dict[str, Callable[[Optional[int]], ClustererInitializerType]] = {
    "random": random_initializer,
    "uniform": uniform_initializer,
    "plusplus": plusplus_initializer,
}


def get_initializer(name: str, seed: Optional[int] = None) -> ClustererInitializerType:
    """
    Factory function to create an initializer by name.

    Args:
        name: "random", "uniform" or "plusplus".
        seed: Random seed, None for nondeterministic.

    Raises:
        InitializerError: If the name is not recognized.
    """
    key = name.lower()
    if key not in _INITIALIZERS:
        raise InitializerError(
            f"Unknown initializer '{name}'. Available: {list(_INITIALIZERS.keys())}"
        )
    return _INITIALIZERS[key](seed)


__all__ = [
    "InitializerError",
    "random_initializer",
    "uniform_initializer",
    "plusplus_initializer",
    "get_initializer",
]
