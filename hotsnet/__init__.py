"""
hotsnet: hierarchical time-surface feature learning for event cameras.

Events from a neuromorphic sensor are turned, layer after layer, into local
time surfaces, matched against learned prototypes and re-emitted with the
prototype id as channel. Stacked layers learn increasingly abstract
spatio-temporal features without supervision.

Example:
    >>> from hotsnet import Event, Layer, Network, train, process
    >>> from hotsnet.learning import get_initializer
    >>>
    >>> net = Network([Layer(32, 32, kernel, clusterer)])
    >>> train(net, events, get_initializer("plusplus", seed=0))
    >>> out = process(net, events)
"""

__version__ = "0.1.0"

from .data.events import Event, Events
from .core import (
    ArrayLayer,
    SerializingLayer,
    SuperCell,
    SuperCellAverage,
    Layer,
    Network,
    process,
    process_batch,
    train,
    train_batch,
)
from .learning.initializers import get_initializer

__all__ = [
    "__version__",
    "Event",
    "Events",
    "ArrayLayer",
    "SerializingLayer",
    "SuperCell",
    "SuperCellAverage",
    "Layer",
    "Network",
    "process",
    "process_batch",
    "train",
    "train_batch",
    "get_initializer",
]
