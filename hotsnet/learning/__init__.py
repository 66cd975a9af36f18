"""
Learning utilities for hotsnet.

- **Initializers**: build the starting codebook of a layer from the time
  surfaces it computes on the training data (random, uniform, k-means++).

The online prototype update rule belongs to the layer's clusterer.
"""

from .initializers import (
    InitializerError,
    random_initializer,
    uniform_initializer,
    plusplus_initializer,
    get_initializer,
)

__all__ = [
    "InitializerError",
    "random_initializer",
    "uniform_initializer",
    "plusplus_initializer",
    "get_initializer",
]
