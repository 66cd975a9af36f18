"""
Event processing and layer-wise training.

Processing:
    A processor is anything with ``reset()`` and
    ``process(event, skip_check) -> Events``: a single Layer or a Network.
    ``process`` resets it once and feeds a sequence of events through it;
    ``process_batch`` does the same independently for every sequence.

Training procedure (layer by layer, never in parallel):
    For each layer, in network order:
        1. The training data is the output of the already fitted layers
           (the raw events for the first layer).
        2. Time surfaces are collected over the initialization sequences and
           the initializer builds the layer's starting codebook.
        3. The full batch is replayed with learning enabled, letting the
           clusterer refine its prototypes online.
        4. Learning is disabled and the full batch is run through the frozen
           layer. The emitted events are the training data of the next layer.

Example:
    >>> from hotsnet.core.run import process, train_batch
    >>> from hotsnet.learning.initializers import plusplus_initializer
    >>>
    >>> train_batch(network, training_sequences, plusplus_initializer(seed=0))
    >>> features = process_batch(network, test_sequences)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..data.events import Events
from .interfaces import (
    ClustererInitializerType,
    Processor,
    TimeSurfaceType,
    TrainableLayer,
)


logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class TrainingError(Exception):
    """Base exception for training errors."""
    pass


class TrainingConfigError(TrainingError, ValueError):
    """Raised for invalid training arguments."""
    pass


# =============================================================================
# PROCESSING
# =============================================================================


def process(processor: Processor, events: Events, skip_check: bool = False) -> Events:
    """
    Process a sequence of events using a generic processor.

    Args:
        processor: Object with reset() and process(event, skip_check).
        events: Sequence of events.
        skip_check: If True consider all events as valid.

    Returns:
        Events emitted by the processor, in emission order.
    """
    processor.reset()

    ret = []
    for ev in events:
        ret.extend(processor.process(ev, skip_check))

    return ret


def process_batch(
    processor: Processor,
    batch: Sequence[Events],
    skip_check: bool = False
) -> List[Events]:
    """
    Process several sequences of events using a generic processor.

    Every sequence is processed independently, with its own reset.

    Returns:
        One sequence of emitted events per input sequence, in batch order.
    """
    return [process(processor, events, skip_check) for events in batch]


# =============================================================================
# TRAINING
# =============================================================================


def collect_time_surfaces(
    layer: TrainableLayer,
    batch: Sequence[Events],
    skip_check: bool = False
) -> List[TimeSurfaceType]:
    """
    Collect the time surfaces a layer computes over some sequences.

    The layer is reset before each sequence, as during processing.
    """
    surfaces: List[TimeSurfaceType] = []
    for events in batch:
        layer.reset()
        for ev in events:
            surfaces.extend(layer.compute_time_surfaces(ev, skip_check))
    return surfaces


def _resolve_init_sequences(
    n_sequences: int,
    use_all: bool,
    init_sequences: Optional[Sequence[int]]
) -> List[int]:
    """Indices of the sequences used to initialize the prototypes."""
    if use_all:
        if init_sequences is not None:
            raise TrainingConfigError(
                "init_sequences cannot be combined with use_all=True"
            )
        return list(range(n_sequences))

    if init_sequences is None:
        return [0]

    indices = list(init_sequences)
    if not indices:
        raise TrainingConfigError("init_sequences must not be empty")
    for idx in indices:
        if isinstance(idx, bool) or not isinstance(idx, int):
            raise TrainingConfigError(
                f"init_sequences must contain integers, got {type(idx).__name__}"
            )
        if not 0 <= idx < n_sequences:
            raise TrainingConfigError(
                f"init_sequences index {idx} out of range for {n_sequences} sequences"
            )
    return indices


def _train_layer(
    layer_idx: int,
    layer: TrainableLayer,
    batch: List[Events],
    init_indices: List[int],
    initializer: ClustererInitializerType,
    skip_check: bool
) -> List[Events]:
    """Initialize, refine and freeze one layer. Returns its emitted events."""
    corpus = [batch[i] for i in init_indices]
    logger.debug(
        f"Layer {layer_idx}: initialization corpus of {len(corpus)} sequences, "
        f"{sum(len(s) for s in corpus)} events"
    )

    surfaces = collect_time_surfaces(layer, corpus, skip_check)
    if not surfaces:
        raise TrainingError(
            f"Layer {layer_idx} produced no time surfaces from "
            f"{sum(len(s) for s in corpus)} input events"
        )

    prototypes = initializer(surfaces, layer.n_clusters)
    layer.set_prototypes(prototypes)

    layer.toggle_learning(True)
    try:
        process_batch(layer, batch, skip_check)
    finally:
        layer.toggle_learning(False)

    emitted = process_batch(layer, batch, skip_check)

    logger.info(
        f"Layer {layer_idx}: {len(surfaces)} surfaces -> "
        f"{layer.n_clusters} prototypes, "
        f"emitted {sum(len(s) for s in emitted)} events"
    )
    return emitted


def train(
    network: Sequence[TrainableLayer],
    training_events: Events,
    initializer: ClustererInitializerType,
    skip_check: bool = False
) -> None:
    """
    Initialize and train the layers of a network on one sequence.

    The layers in the network must be Processors, Classifiers and
    TimeSurfacePools (see :class:`hotsnet.core.interfaces.TrainableLayer`).

    Args:
        network: The network (or any sequence of layers).
        training_events: Events.
        initializer: Clustering initializer, called once per layer with the
            layer's time surfaces and number of clusters.
        skip_check: If True consider all events as valid.

    Raises:
        TrainingError: If a layer produces no time surfaces.
    """
    train_batch(network, [training_events], initializer, use_all=True, skip_check=skip_check)


def train_batch(
    network: Sequence[TrainableLayer],
    training_events: Sequence[Events],
    initializer: ClustererInitializerType,
    use_all: bool = True,
    skip_check: bool = False,
    init_sequences: Optional[Sequence[int]] = None
) -> None:
    """
    Initialize and train the layers of a network on several sequences.

    The initialization corpus and the training corpus are kept separate:
    training always replays every sequence, initialization uses every
    sequence only if ``use_all`` is True.

    Args:
        network: The network (or any sequence of layers).
        training_events: Sequences of events.
        initializer: Clustering initializer.
        use_all: If True use all sequences to initialize the prototypes
            (all sequences are used for training regardless).
        skip_check: If True consider all events as valid.
        init_sequences: Indices of the sequences used for initialization
            when use_all is False. Defaults to the first sequence.

    Raises:
        TrainingConfigError: If there are no sequences, init_sequences is
            invalid, or init_sequences is given together with use_all.
        TrainingError: If a layer produces no time surfaces.
    """
    batch = [list(events) for events in training_events]
    if not batch:
        raise TrainingConfigError("training_events must contain at least one sequence")

    init_indices = _resolve_init_sequences(len(batch), use_all, init_sequences)

    logger.info(
        f"Training {len(network)} layers on {len(batch)} sequences "
        f"({len(init_indices)} used for initialization)"
    )

    for layer_idx, layer in enumerate(network):
        batch = _train_layer(layer_idx, layer, batch, init_indices, initializer, skip_check)


__all__ = [
    # Exceptions
    "TrainingError",
    "TrainingConfigError",
    # Processing
    "process",
    "process_batch",
    # Training
    "collect_time_surfaces",
    "train",
    "train_batch",
]
