"""
Network: an ordered stack of layers.

Each event is fed to the first layer; every event a layer emits is fed, in
emission order, to the next one. The events emitted by the last layer are the
output of the network.

Example:
    >>> net = Network([layer1, layer2])
    >>> out = process(net, events)   # hotsnet.core.run.process
    >>> net[0].get_prototypes()
"""

from __future__ import annotations

from typing import Iterator, List, Sequence, Union

from ..data.events import Event, Events
from .interfaces import Processor


class Network:
    """
    Ordered chain of processors.

    Args:
        layers: Layers in processing order. Must not be empty.

    Raises:
        ValueError: If no layer is given.
    """

    def __init__(self, layers: Sequence[Processor]) -> None:
        if len(layers) == 0:
            raise ValueError("A network needs at least one layer")
        self.layers: List[Processor] = list(layers)

    def reset(self) -> None:
        """Reset every layer."""
        for layer in self.layers:
            layer.reset()

    def process(self, event: Event, skip_check: bool = False) -> Events:
        """Feed an event through the whole chain."""
        events = [event]
        for layer in self.layers:
            emitted = []
            for ev in events:
                emitted.extend(layer.process(ev, skip_check))
            if not emitted:
                return []
            events = emitted
        return events

    def add_layer(self, layer: Processor) -> None:
        """Append a layer at the end of the chain."""
        self.layers.append(layer)

    @property
    def num_layers(self) -> int:
        return len(self.layers)

    def __len__(self) -> int:
        return len(self.layers)

    def __getitem__(self, idx: Union[int, slice]):
        """A slice returns a new Network and raises ValueError if it selects no layer."""
        if isinstance(idx, slice):
            return Network(self.layers[idx])
        return self.layers[idx]

    def __iter__(self) -> Iterator[Processor]:
        return iter(self.layers)

    def __repr__(self) -> str:
        inner = ", ".join(repr(layer) for layer in self.layers)
        return f"Network([{inner}])"


__all__ = ["Network"]
