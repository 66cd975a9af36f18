"""
Core event processing for hotsnet.

This module provides the building blocks of a HOTS network:

- **Interfaces**: Processor, Classifier, TimeSurfacePool capability contracts
- **Modifiers**: output remapping (ArrayLayer, SerializingLayer) and spatial
  subsampling (SuperCell, SuperCellAverage)
- **Layer / Network**: composition of kernels, clusterers and modifiers
- **Run**: the event driver (process) and the layer-wise trainer (train)

Architecture:

    events ──► Layer 1 ──► events(k1) ──► Layer 2 ──► events(k2) ──► ...
               (TS + clustering)          (TS + clustering)

Example:
    >>> from hotsnet.core import Layer, Network, SuperCell, process, train
    >>>
    >>> net = Network([
    ...     Layer(32, 32, kernel1, clusterer1),
    ...     Layer(32, 32, kernel2, clusterer2, supercell=SuperCell(32, 32, K=8)),
    ... ])
    >>> train(net, training_events, initializer)
    >>> features = process(net, events)
"""

# =============================================================================
# INTERFACES
# =============================================================================

from .interfaces import (
    TimeSurfaceType,
    ClustererInitializerType,
    Processor,
    Classifier,
    TimeSurfacePool,
    TrainableLayer,
    TimeSurfaceKernel,
    Clusterer,
)

# =============================================================================
# MODIFIERS
# =============================================================================

from .modifiers import (
    # Exceptions
    ModifierError,
    ModifierConfigError,
    ModifierRuntimeError,
    # Remappers
    EventRemapper,
    ArrayLayer,
    SerializingLayer,
    # Supercells
    SuperCell,
    CellMemory,
    SuperCellAverage,
    # Factories
    build_remapper,
    build_supercell,
)

# =============================================================================
# LAYER / NETWORK
# =============================================================================

from .layer import (
    LayerError,
    LayerConfigError,
    InvalidEventError,
    Layer,
)
from .network import Network

# =============================================================================
# RUN
# =============================================================================

from .run import (
    TrainingError,
    TrainingConfigError,
    process,
    process_batch,
    collect_time_surfaces,
    train,
    train_batch,
)

__all__ = [
    # Interfaces
    "TimeSurfaceType",
    "ClustererInitializerType",
    "Processor",
    "Classifier",
    "TimeSurfacePool",
    "TrainableLayer",
    "TimeSurfaceKernel",
    "Clusterer",
    # Modifiers
    "ModifierError",
    "ModifierConfigError",
    "ModifierRuntimeError",
    "EventRemapper",
    "ArrayLayer",
    "SerializingLayer",
    "SuperCell",
    "CellMemory",
    "SuperCellAverage",
    "build_remapper",
    "build_supercell",
    # Layer / Network
    "LayerError",
    "LayerConfigError",
    "InvalidEventError",
    "Layer",
    "Network",
    # Run
    "TrainingError",
    "TrainingConfigError",
    "process",
    "process_batch",
    "collect_time_surfaces",
    "train",
    "train_batch",
]
