"""
Layer Modifiers: components that reshape the output of a layer.

Remappers change the coordinates or the channel of an emitted event without
touching its timestamp:

    - ArrayLayer:        {t, x, y, p} -> {t, k, y, 0}
    - SerializingLayer:  {t, x, y, p} -> {t, w·h·k + w·y + x, 0, 0}

Supercells subsample the output space of a layer into square cells of side K.
Cells are anchored on the K-stride tiling of the context and widened by
``overlap`` on every side, so events close to a cell border belong to more
than one cell and make the layer emit more than one event.

    overlap = 0                 overlap = 1
    +----+----+--               +-----+-----+--
    | 0  | 1  |                 |  0 [|]  1  |
    +----+----+--               +----[+]----+--     [ ] = shared border band
    | 2  | 3  |                 |  2 [|]  3  |

SuperCellAverage keeps a running mean of the time surfaces seen by each cell.

Example:
    >>> from hotsnet.core.modifiers import SerializingLayer, SuperCell
    >>>
    >>> remapper = SerializingLayer(4, 3)
    >>> remapper.remap_event(Event(10, 2, 1, 0), 5)
    Event(t=10, x=66, y=0, p=0)
    >>>
    >>> cells = SuperCell(10, 10, K=5)
    >>> cells.get_cell_sizes()
    (2, 2)
    >>> cells.find_cells(7, 7)
    [(1, 1)]
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

import torch

from ..data.events import Event


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class ModifierError(Exception):
    """Base exception for layer modifier errors."""
    pass


class ModifierConfigError(ModifierError, ValueError):
    """Raised for invalid modifier geometry."""
    pass


class ModifierRuntimeError(ModifierError):
    """Raised for errors while applying a modifier."""
    pass


# =============================================================================
# VALIDATION HELPERS
# =============================================================================


def _validate_positive_int(value: Any, name: str) -> None:
    """Validate that a value is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise ModifierConfigError(f"{name} must be positive, got {value}")


def _validate_non_negative_int(value: Any, name: str) -> None:
    """Validate that a value is a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ModifierConfigError(f"{name} must be non-negative, got {value}")


# =============================================================================
# EVENT REMAPPERS
# =============================================================================


class EventRemapper(ABC):
    """
    Interface for a modifier that remaps events.

    A remapper usually changes the coordinates or the channel of an event,
    without modifying the event timestamp.
    """

    @abstractmethod
    def remap_event(self, event: Event, k: int) -> Event:
        """
        Remap an event.

        Args:
            event: Event being emitted by the layer.
            k: Cluster id assigned to the event.

        Returns:
            Remapped event.
        """


class ArrayLayer(EventRemapper):
    """
    Changes the output of a layer to ArrayHOTS.

    Output events are emitted as {t, k, y, 0}, where k is the clustering
    output: the cluster id becomes the horizontal axis and the row is kept.
    """

    def remap_event(self, event: Event, k: int) -> Event:
        return Event(event.t, int(k), event.y, 0)

    def __repr__(self) -> str:
        return "ArrayLayer()"


class SerializingLayer(EventRemapper):
    """
    Changes the output of a layer to a single dimension.

    Output events are remapped as {t, w·h·k + w·y + x, 0, 0}, where k is
    the clustering output and w, h are the dimensions of the context.

    Args:
        width: Horizontal size of the context.
        height: Vertical size of the context.

    Raises:
        ModifierConfigError: If width or height are not positive.
    """

    def __init__(self, width: int, height: int) -> None:
        _validate_positive_int(width, "width")
        _validate_positive_int(height, "height")
        self.width = width
        self.height = height

    def remap_event(self, event: Event, k: int) -> Event:
        w, h = self.width, self.height
        return Event(event.t, w * h * int(k) + w * event.y + event.x, 0, 0)

    def decode(self, index: int) -> Tuple[int, int, int]:
        """
        Invert the linear index produced by :meth:`remap_event`.

        Returns:
            Tuple (x, y, k).
        """
        if index < 0:
            raise ValueError(f"index must be non-negative, got {index}")
        k, rest = divmod(index, self.width * self.height)
        y, x = divmod(rest, self.width)
        return x, y, k

    def get_size(self) -> Tuple[int, int]:
        """Returns the size of the context as (width, height)."""
        return self.width, self.height

    def __repr__(self) -> str:
        return f"SerializingLayer(width={self.width}, height={self.height})"


# =============================================================================
# SUPERCELLS
# =============================================================================


class SuperCell:
    """
    Subsample a layer into super cells.

    The output coordinates of the events are mapped onto cells of a fixed
    size, thus reducing the output dimensionality. With overlap > 0 every
    cell also covers a band of ``overlap`` pixels around its tile, so a
    single event may fall into several cells. Overlapped cells are therefore
    up to K + 2 * overlap wide, while the grid keeps its K stride.

    Attributes:
        width: Width of the context.
        height: Height of the context.
        K: Size of the cells.
        overlap: Cells overlap.
        wcell: Number of horizontal cells.
        hcell: Number of vertical cells.
        wmax: Horizontal extent of the tiling before clipping.
        hmax: Vertical extent of the tiling before clipping.

    Raises:
        ModifierConfigError: If the geometry is not positive or
            overlap >= K.
    """

    def __init__(self, width: int, height: int, K: int, overlap: int = 0) -> None:
        _validate_positive_int(width, "width")
        _validate_positive_int(height, "height")
        _validate_positive_int(K, "K")
        _validate_non_negative_int(overlap, "overlap")

        if overlap >= K:
            raise ModifierConfigError(
                f"overlap ({overlap}) must be smaller than the cell size K ({K})"
            )

        self.width = width
        self.height = height
        self.K = K
        self.overlap = overlap

        self.wcell = math.ceil(width / K)
        self.hcell = math.ceil(height / K)

        self.wmax = self.wcell * K
        self.hmax = self.hcell * K

    def _bounds(self, c: int, limit: int) -> Tuple[int, int]:
        """Clipped [lower, upper) range of cell c along one axis."""
        lower = max(c * self.K - self.overlap, 0)
        upper = min((c + 1) * self.K + self.overlap, limit)
        return lower, upper

    def _candidates(self, e: int, n_cells: int) -> range:
        """Cells whose widened range may contain coordinate e."""
        first = max((e - self.overlap) // self.K, 0)
        last = min((e + self.overlap) // self.K, n_cells - 1)
        return range(first, last + 1)

    def find_cells(self, ex: int, ey: int) -> List[Tuple[int, int]]:
        """
        Find coordinates of the cells that contain a point.

        The output contains more than one pair of coordinates only if
        overlap > 0. Cells are listed in row-major order.

        Args:
            ex: x coordinate of the event.
            ey: y coordinate of the event.

        Returns:
            List of (cx, cy), empty if the point is outside the context.
        """
        if not (0 <= ex < self.width and 0 <= ey < self.height):
            return []

        return [
            (cx, cy)
            for cy in self._candidates(ey, self.hcell)
            for cx in self._candidates(ex, self.wcell)
            if self.is_in_cell(cx, cy, ex, ey)
        ]

    def is_in_cell(self, cx: int, cy: int, ex: int, ey: int) -> bool:
        """
        Check whether event coordinates are in a certain cell.

        The lower edge is inclusive, the upper edge exclusive, both clipped
        to the context.
        """
        if not (0 <= cx < self.wcell and 0 <= cy < self.hcell):
            return False
        x0, x1 = self._bounds(cx, self.width)
        y0, y1 = self._bounds(cy, self.height)
        return x0 <= ex < x1 and y0 <= ey < y1

    def get_cell_center(self, cx: int, cy: int) -> Tuple[int, int]:
        """
        Get the center of a cell in event space.

        The center is taken on the cell tile (without overlap), clipped to
        the context, so it is always a valid coordinate.
        """
        if not (0 <= cx < self.wcell and 0 <= cy < self.hcell):
            raise IndexError(
                f"Cell ({cx}, {cy}) outside grid {self.wcell}x{self.hcell}"
            )
        x0, x1 = cx * self.K, min((cx + 1) * self.K, self.width)
        y0, y1 = cy * self.K, min((cy + 1) * self.K, self.height)
        return (x0 + x1) // 2, (y0 + y1) // 2

    def get_size(self) -> Tuple[int, int]:
        """Returns the size of the context as (width, height)."""
        return self.width, self.height

    def get_cell_sizes(self) -> Tuple[int, int]:
        """Returns the number of (horizontal, vertical) cells."""
        return self.wcell, self.hcell

    @property
    def n_cells(self) -> int:
        """Total number of cells."""
        return self.wcell * self.hcell

    def __repr__(self) -> str:
        return (
            f"SuperCell(size={self.width}x{self.height}, K={self.K}, "
            f"overlap={self.overlap}, cells={self.wcell}x{self.hcell})"
        )


@dataclass
class CellMemory:
    """Running average of the time surfaces seen by one cell."""
    ts: Optional[torch.Tensor] = None
    count: int = 0


class SuperCellAverage:
    """
    Average time surfaces over supercells.

    Holds a :class:`SuperCell` partition and one :class:`CellMemory` per
    cell, stored in a flat list indexed by ``cy * wcell + cx`` and allocated
    once at construction.

    Args:
        width: Width of the context.
        height: Height of the context.
        K: Size of the cells.
        overlap: Cells overlap.

    Example:
        >>> avg = SuperCellAverage(32, 32, K=8, overlap=2)
        >>> for cx, cy in avg.find_cells(ev.x, ev.y):
        ...     surface = avg.average_ts(surface, cx, cy)
    """

    def __init__(self, width: int, height: int, K: int, overlap: int = 0) -> None:
        self.supercell = SuperCell(width, height, K, overlap)
        self.cells: List[CellMemory] = [
            CellMemory() for _ in range(self.supercell.n_cells)
        ]

    # Partition queries -------------------------------------------------------

    def find_cells(self, ex: int, ey: int) -> List[Tuple[int, int]]:
        return self.supercell.find_cells(ex, ey)

    def is_in_cell(self, cx: int, cy: int, ex: int, ey: int) -> bool:
        return self.supercell.is_in_cell(cx, cy, ex, ey)

    def get_cell_center(self, cx: int, cy: int) -> Tuple[int, int]:
        return self.supercell.get_cell_center(cx, cy)

    def get_size(self) -> Tuple[int, int]:
        return self.supercell.get_size()

    def get_cell_sizes(self) -> Tuple[int, int]:
        return self.supercell.get_cell_sizes()

    # Cell memory -------------------------------------------------------------

    def _index(self, cx: int, cy: int) -> int:
        wcell, hcell = self.supercell.get_cell_sizes()
        if not (0 <= cx < wcell and 0 <= cy < hcell):
            raise IndexError(f"Cell ({cx}, {cy}) outside grid {wcell}x{hcell}")
        return cy * wcell + cx

    def average_ts(self, ts: torch.Tensor, cx: int, cy: int) -> torch.Tensor:
        """
        Average time surfaces over a cell.

        The first surface initializes the cell; later ones update the mean
        as avg += (ts - avg) / (count + 1).

        Args:
            ts: New time surface computed.
            cx: x coordinate of the cell.
            cy: y coordinate of the cell.

        Returns:
            Averaged time surface (a copy, the cell memory is not exposed).

        Raises:
            IndexError: If the cell is outside the grid.
            ModifierRuntimeError: If ts does not match the shape of the
                surfaces already averaged in the cell.
        """
        mem = self.cells[self._index(cx, cy)]

        if mem.count == 0:
            mem.ts = ts.detach().clone()
            if not mem.ts.is_floating_point():
                mem.ts = mem.ts.float()
            mem.count = 1
            return mem.ts.clone()

        if ts.shape != mem.ts.shape:
            raise ModifierRuntimeError(
                f"Time surface shape {tuple(ts.shape)} does not match cell "
                f"({cx}, {cy}) shape {tuple(mem.ts.shape)}"
            )

        mem.ts += (ts.to(mem.ts.dtype) - mem.ts) / (mem.count + 1)
        mem.count += 1
        return mem.ts.clone()

    def get_count(self, cx: int, cy: int) -> int:
        """Number of surfaces averaged in a cell."""
        return self.cells[self._index(cx, cy)].count

    def get_average(self, cx: int, cy: int) -> Optional[torch.Tensor]:
        """Current average of a cell, None if the cell is empty."""
        mem = self.cells[self._index(cx, cy)]
        return None if mem.ts is None else mem.ts.clone()

    def clear(self) -> None:
        """Forget every cell average. The cell list itself is kept."""
        for mem in self.cells:
            mem.ts = None
            mem.count = 0

    def __repr__(self) -> str:
        sc = self.supercell
        return (
            f"SuperCellAverage(size={sc.width}x{sc.height}, K={sc.K}, "
            f"overlap={sc.overlap}, cells={sc.wcell}x{sc.hcell})"
        )


# =============================================================================
# FACTORIES
# =============================================================================


def build_remapper(params: Any) -> Optional[EventRemapper]:
    """
    Create the remapper described by a ModifierParams.

    With supercells the layer emits cell coordinates, so a serializing
    remapper covers the cell grid instead of the full context.

    Returns:
        ArrayLayer, SerializingLayer or None for "none".
    """
    if params.remapper == "array":
        return ArrayLayer()
    if params.remapper == "serialize":
        if params.supercell_size is None:
            return SerializingLayer(params.width, params.height)
        cells = SuperCell(params.width, params.height, params.supercell_size, params.overlap)
        return SerializingLayer(*cells.get_cell_sizes())
    if params.remapper == "none":
        return None
    raise ModifierConfigError(f"Unknown remapper '{params.remapper}'")


def build_supercell(params: Any) -> Optional[Union[SuperCell, SuperCellAverage]]:
    """
    Create the supercell modifier described by a ModifierParams.

    Returns:
        SuperCellAverage if averaging is enabled, SuperCell otherwise, or
        None when supercell_size is not set.
    """
    if params.supercell_size is None:
        return None
    cls = SuperCellAverage if params.average else SuperCell
    return cls(params.width, params.height, params.supercell_size, params.overlap)


__all__ = [
    # Exceptions
    "ModifierError",
    "ModifierConfigError",
    "ModifierRuntimeError",
    # Remappers
    "EventRemapper",
    "ArrayLayer",
    "SerializingLayer",
    # Supercells
    "SuperCell",
    "CellMemory",
    "SuperCellAverage",
    # Factories
    "build_remapper",
    "build_supercell",
]
