"""
Capability contracts between the processing core and its collaborators.

The driver and the training orchestrator work with anything that exposes the
methods below; they never depend on a concrete layer class.

- **Processor**: ``reset()`` and ``process(event, skip_check)``. Single layers
  and whole networks both satisfy it.
- **Classifier**: codebook access of a layer (install prototypes, toggle the
  online learning rule).
- **TimeSurfacePool**: exposes the time surfaces a layer computes for an event,
  without clustering them.
- **TimeSurfaceKernel** and **Clusterer**: the numeric collaborators a
  :class:`~hotsnet.core.layer.Layer` is composed of. Their math (decay
  function, distance, prototype update) lives outside this package.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, Sequence, Tuple, Union, runtime_checkable

import torch

from ..data.events import Event, Events


TimeSurfaceType = torch.Tensor

# (time surfaces, number of clusters) -> codebook of shape (k, *surface.shape)
ClustererInitializerType = Callable[[Sequence[torch.Tensor], int], torch.Tensor]


@runtime_checkable
class Processor(Protocol):
    """Something that turns events into emitted events."""

    def reset(self) -> None:
        ...

    def process(self, event: Event, skip_check: bool = False) -> Events:
        ...


@runtime_checkable
class Classifier(Protocol):
    """Codebook side of a trainable layer."""

    @property
    def n_clusters(self) -> int:
        ...

    def set_prototypes(self, prototypes: torch.Tensor) -> None:
        ...

    def toggle_learning(self, enable: bool) -> bool:
        ...


@runtime_checkable
class TimeSurfacePool(Protocol):
    """Time-surface side of a trainable layer."""

    def reset(self) -> None:
        ...

    def compute_time_surfaces(
        self, event: Event, skip_check: bool = False
    ) -> List[TimeSurfaceType]:
        ...


@runtime_checkable
class TrainableLayer(Processor, Classifier, TimeSurfacePool, Protocol):
    """A layer the training orchestrator can fit."""
    pass


@runtime_checkable
class TimeSurfaceKernel(Protocol):
    """
    Time-surface computation for one layer context.

    ``update`` records an event in the context, ``compute`` returns the
    surface centered on ``(x, y)`` at time ``t`` together with a flag telling
    whether the surface carries enough activity to be considered valid.
    """

    def reset(self) -> None:
        ...

    def update(self, event: Event) -> None:
        ...

    def compute(
        self, t: Union[int, float], x: int, y: int, p: int
    ) -> Tuple[TimeSurfaceType, bool]:
        ...


@runtime_checkable
class Clusterer(Protocol):
    """
    Codebook owner. ``cluster`` returns the id of the closest prototype and,
    while learning is enabled, applies the online update rule.
    """

    @property
    def n_clusters(self) -> int:
        ...

    def cluster(self, surface: TimeSurfaceType) -> int:
        ...

    def set_prototypes(self, prototypes: torch.Tensor) -> None:
        ...

    def get_prototypes(self) -> torch.Tensor:
        ...

    def toggle_learning(self, enable: bool) -> bool:
        ...


__all__ = [
    "TimeSurfaceType",
    "ClustererInitializerType",
    "Processor",
    "Classifier",
    "TimeSurfacePool",
    "TrainableLayer",
    "TimeSurfaceKernel",
    "Clusterer",
]
