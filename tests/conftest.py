"""Shared fixtures."""

import logging

import pytest
import torch

from hotsnet.core.layer import Layer
from hotsnet.data.events import Event

from tests.fakes import FakeClusterer, FakeKernel


@pytest.fixture
def events():
    """A short chronological stream on an 8x8 sensor."""
    return [
        Event(0, 1, 1, 0),
        Event(5, 2, 3, 1),
        Event(10, 6, 2, 0),
        Event(12, 7, 7, 1),
        Event(20, 3, 5, 0),
        Event(31, 0, 6, 1),
    ]


@pytest.fixture
def make_layer():
    """Factory for layers built on the fake kernel and clusterer."""

    def _make(width=8, height=8, n_clusters=3, min_events=1, prototypes=None, **kwargs):
        layer = Layer(width, height, FakeKernel(min_events), FakeClusterer(n_clusters), **kwargs)
        if prototypes is not None:
            layer.set_prototypes(torch.as_tensor(prototypes, dtype=torch.float32))
        return layer

    return _make


@pytest.fixture
def restore_hotsnet_logger():
    """Undo setup_logging side effects on the 'hotsnet' logger."""
    logger = logging.getLogger("hotsnet")
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
