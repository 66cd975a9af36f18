"""
HOTS Layer: time surfaces + clustering + output modifiers.

A layer receives one event at a time, records it in its time-surface kernel,
computes the surface(s) around it, assigns each surface to the closest
prototype of its clusterer and emits events carrying the cluster id.

Processing of one event:

    event ──► validity check ──► kernel.update
                                     │
           ┌─────────────────────────┼──────────────────────────┐
       no supercell              SuperCell                SuperCellAverage
     surface at (x, y)     surface at each cell       surface at (x, y), averaged
           │                 center                   into each containing cell
           └─────────────────────────┼──────────────────────────┘
                                     ▼
                        clusterer.cluster ──► k
                                     ▼
                    emit {t, x, y, k} or remapper(event, k)

The kernel and the clusterer are collaborators (see
:mod:`hotsnet.core.interfaces`); this module only wires them together.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple, Union

import torch

from ..data.events import Event, Events
from .interfaces import Clusterer, TimeSurfaceKernel, TimeSurfaceType
from .modifiers import (
    EventRemapper,
    SuperCell,
    SuperCellAverage,
    build_remapper,
    build_supercell,
)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class LayerError(Exception):
    """Base exception for layer errors."""
    pass


class LayerConfigError(LayerError, ValueError):
    """Raised for inconsistent layer composition."""
    pass


class InvalidEventError(LayerError, ValueError):
    """Raised when an event is outside the context or breaks causality."""
    pass


# =============================================================================
# LAYER
# =============================================================================


class Layer:
    """
    A single HOTS layer.

    Satisfies the Processor, Classifier and TimeSurfacePool contracts, so it
    can be driven by :func:`hotsnet.core.run.process` and trained by
    :func:`hotsnet.core.run.train`.

    Args:
        width: Horizontal size of the input context.
        height: Vertical size of the input context.
        kernel: Time-surface kernel for this context.
        clusterer: Codebook owner.
        remapper: Optional output remapper.
        supercell: Optional SuperCell or SuperCellAverage.

    Raises:
        LayerConfigError: If the supercell geometry does not match the context.
    """

    def __init__(
        self,
        width: int,
        height: int,
        kernel: TimeSurfaceKernel,
        clusterer: Clusterer,
        remapper: Optional[EventRemapper] = None,
        supercell: Optional[Union[SuperCell, SuperCellAverage]] = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise LayerConfigError(f"Layer size must be positive, got {width}x{height}")
        if supercell is not None and supercell.get_size() != (width, height):
            raise LayerConfigError(
                f"Supercell context {supercell.get_size()} does not match "
                f"layer context {(width, height)}"
            )

        self.width = width
        self.height = height
        self.kernel = kernel
        self.clusterer = clusterer
        self.remapper = remapper
        self.supercell = supercell

        self._last_t: Optional[Union[int, float]] = None

    @classmethod
    def from_params(
        cls,
        params: Any,
        kernel: TimeSurfaceKernel,
        clusterer: Clusterer,
    ) -> "Layer":
        """
        Create a layer whose modifiers are described by a ModifierParams.

        Example:
            >>> params = get_modifier_params(load_config())
            >>> layer = Layer.from_params(params, kernel, clusterer)
        """
        return cls(
            params.width,
            params.height,
            kernel,
            clusterer,
            remapper=build_remapper(params),
            supercell=build_supercell(params),
        )

    # -------------------------------------------------------------------------
    # Processor
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Reset the time context, causality check and cell averages."""
        self.kernel.reset()
        self._last_t = None
        if isinstance(self.supercell, SuperCellAverage):
            self.supercell.clear()

    def process(self, event: Event, skip_check: bool = False) -> Events:
        """
        Process an event and return the emitted events.

        Args:
            event: Input event.
            skip_check: If True consider the event valid, and keep surfaces
                the kernel flags as not good.

        Returns:
            Emitted events (none, one, or several with overlapping supercells).

        Raises:
            InvalidEventError: If skip_check is False and the event is
                outside the context or earlier than the previous one.
        """
        emitted = []
        for position, surface in self._surfaces(event, skip_check):
            k = self.clusterer.cluster(surface)
            emitted.append(self._emit(event, position, k))
        return emitted

    # -------------------------------------------------------------------------
    # TimeSurfacePool
    # -------------------------------------------------------------------------

    def compute_time_surfaces(
        self, event: Event, skip_check: bool = False
    ) -> List[TimeSurfaceType]:
        """Same surfaces as :meth:`process` would cluster, without clustering."""
        return [surface for _, surface in self._surfaces(event, skip_check)]

    # -------------------------------------------------------------------------
    # Classifier
    # -------------------------------------------------------------------------

    @property
    def n_clusters(self) -> int:
        return self.clusterer.n_clusters

    def set_prototypes(self, prototypes: torch.Tensor) -> None:
        self.clusterer.set_prototypes(prototypes)

    def get_prototypes(self) -> torch.Tensor:
        return self.clusterer.get_prototypes()

    def toggle_learning(self, enable: bool) -> bool:
        """Enable or disable online learning, returns the previous state."""
        return self.clusterer.toggle_learning(enable)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_event(self, event: Event) -> None:
        if not (0 <= event.x < self.width and 0 <= event.y < self.height):
            raise InvalidEventError(
                f"Event at ({event.x}, {event.y}) outside context "
                f"{self.width}x{self.height}"
            )
        if self._last_t is not None and event.t < self._last_t:
            raise InvalidEventError(
                f"Event timestamp {event.t} earlier than previous {self._last_t}"
            )

    def _surfaces(
        self, event: Event, skip_check: bool
    ) -> List[Tuple[Tuple[int, int], TimeSurfaceType]]:
        """Update the context and compute (output position, surface) pairs."""
        if not skip_check:
            self._check_event(event)
        self._last_t = event.t

        self.kernel.update(event)

        if self.supercell is None:
            surface, good = self.kernel.compute(event.t, event.x, event.y, event.p)
            if good or skip_check:
                return [((event.x, event.y), surface)]
            return []

        cells = self.supercell.find_cells(event.x, event.y)
        result = []

        if isinstance(self.supercell, SuperCellAverage):
            surface, good = self.kernel.compute(event.t, event.x, event.y, event.p)
            if not (good or skip_check):
                return []
            for cx, cy in cells:
                result.append(((cx, cy), self.supercell.average_ts(surface, cx, cy)))
            return result

        for cx, cy in cells:
            ccx, ccy = self.supercell.get_cell_center(cx, cy)
            surface, good = self.kernel.compute(event.t, ccx, ccy, event.p)
            if good or skip_check:
                result.append(((cx, cy), surface))
        return result

    def _emit(self, event: Event, position: Tuple[int, int], k: int) -> Event:
        out = Event(event.t, position[0], position[1], int(k))
        if self.remapper is not None:
            return self.remapper.remap_event(out, k)
        return out

    def __repr__(self) -> str:
        return (
            f"Layer(size={self.width}x{self.height}, clusters={self.n_clusters}, "
            f"remapper={self.remapper!r}, supercell={self.supercell!r})"
        )


__all__ = [
    "LayerError",
    "LayerConfigError",
    "InvalidEventError",
    "Layer",
]
