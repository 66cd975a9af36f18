"""Unit tests for Layer composition."""

import pytest
import torch

from hotsnet.config import ModifierParams
from hotsnet.core.interfaces import Processor, TrainableLayer
from hotsnet.core.layer import InvalidEventError, Layer, LayerConfigError
from hotsnet.core.modifiers import (
    ArrayLayer,
    SerializingLayer,
    SuperCell,
    SuperCellAverage,
)
from hotsnet.data.events import Event

from tests.fakes import FakeClusterer, FakeKernel


# Prototypes over [t, x, y, p] surfaces: cluster 0 near the origin,
# cluster 1 far away in x
PROTOTYPES = [[0.0, 0.0, 0.0, 0.0], [0.0, 100.0, 0.0, 0.0]]


class TestLayerProcess:
    """Tests for plain (unmodified) layers."""

    def test_satisfies_contracts(self, make_layer):
        """Test that Layer exposes the processor and training capabilities."""
        layer = make_layer()

        assert isinstance(layer, Processor)
        assert isinstance(layer, TrainableLayer)

    def test_emits_cluster_id(self, make_layer):
        """Test that the channel of the emitted event is the cluster id."""
        layer = make_layer(width=200, n_clusters=2, prototypes=PROTOTYPES)

        assert layer.process(Event(0, 1, 1, 1)) == [Event(0, 1, 1, 0)]
        assert layer.process(Event(1, 90, 1, 0)) == [Event(1, 90, 1, 1)]

    def test_kernel_updated_before_compute(self, make_layer):
        """Test that the event is recorded and its surface computed in place."""
        layer = make_layer(n_clusters=2, prototypes=PROTOTYPES)

        layer.process(Event(3, 4, 5, 1))

        assert layer.kernel.updates == [Event(3, 4, 5, 1)]
        assert layer.kernel.computes == [(3, 4, 5, 1)]

    def test_remapper_applied(self, make_layer):
        """Test that a remapper rewrites the emitted event."""
        array = make_layer(n_clusters=2, prototypes=PROTOTYPES, remapper=ArrayLayer())
        serial = make_layer(n_clusters=2, prototypes=PROTOTYPES,
                            remapper=SerializingLayer(8, 8))

        assert array.process(Event(7, 2, 3, 1)) == [Event(7, 0, 3, 0)]
        assert serial.process(Event(7, 2, 3, 1)) == [Event(7, 8 * 3 + 2, 0, 0)]

    def test_not_good_surfaces_dropped(self, make_layer):
        """Test that surfaces without enough context emit nothing."""
        layer = make_layer(n_clusters=2, min_events=2, prototypes=PROTOTYPES)

        assert layer.process(Event(0, 1, 1, 0)) == []
        assert len(layer.process(Event(1, 1, 1, 0))) == 1

    def test_skip_check_keeps_not_good_surfaces(self, make_layer):
        """Test that skip_check forwards every surface."""
        layer = make_layer(n_clusters=2, min_events=5, prototypes=PROTOTYPES)

        assert len(layer.process(Event(0, 1, 1, 0), skip_check=True)) == 1


class TestLayerValidity:
    """Tests for event validation."""

    @pytest.mark.parametrize("x,y", [(8, 0), (0, 8), (-1, 2)])
    def test_out_of_context(self, make_layer, x, y):
        """Test that events outside the context are rejected."""
        layer = make_layer(n_clusters=2, prototypes=PROTOTYPES)

        with pytest.raises(InvalidEventError, match="outside context"):
            layer.process(Event(0, x, y, 0))

    def test_decreasing_timestamp(self, make_layer):
        """Test that causality is enforced within a sequence."""
        layer = make_layer(n_clusters=2, prototypes=PROTOTYPES)
        layer.process(Event(10, 1, 1, 0))

        with pytest.raises(InvalidEventError, match="earlier"):
            layer.process(Event(9, 1, 1, 0))

    def test_reset_restarts_causality(self, make_layer):
        """Test that a reset starts a new sequence."""
        layer = make_layer(n_clusters=2, prototypes=PROTOTYPES)
        layer.process(Event(10, 1, 1, 0))

        layer.reset()

        assert len(layer.process(Event(0, 1, 1, 0))) == 1
        assert layer.kernel.resets == 1

    def test_skip_check_accepts_out_of_order(self, make_layer):
        """Test that skip_check disables validation."""
        layer = make_layer(n_clusters=2, prototypes=PROTOTYPES)
        layer.process(Event(10, 1, 1, 0))

        assert len(layer.process(Event(9, 1, 1, 0), skip_check=True)) == 1


class TestLayerSuperCell:
    """Tests for layers with supercell modifiers."""

    def test_surfaces_at_cell_centers(self, make_layer):
        """Test that a plain supercell computes one surface per cell center."""
        layer = make_layer(width=10, height=10, n_clusters=2, prototypes=PROTOTYPES,
                           supercell=SuperCell(10, 10, 5, 1))

        out = layer.process(Event(4, 5, 2, 1))

        assert layer.kernel.computes == [(4, 2, 2, 1), (4, 7, 2, 1)]
        assert [(ev.x, ev.y) for ev in out] == [(0, 0), (1, 0)]
        assert all(ev.t == 4 for ev in out)

    def test_no_overlap_single_event(self, make_layer):
        """Test that without overlap one event is emitted at cell coordinates."""
        layer = make_layer(width=10, height=10, n_clusters=2, prototypes=PROTOTYPES,
                           supercell=SuperCell(10, 10, 5))

        out = layer.process(Event(0, 7, 7, 0))

        assert out == [Event(0, 1, 1, 0)]

    def test_average_surfaces(self, make_layer):
        """Test that averaging accumulates the event surface per cell."""
        avg = SuperCellAverage(10, 10, 5)
        layer = make_layer(width=10, height=10, n_clusters=2, prototypes=PROTOTYPES,
                           supercell=avg)

        layer.compute_time_surfaces(Event(0, 1, 1, 0))
        surfaces = layer.compute_time_surfaces(Event(2, 3, 1, 0))

        torch.testing.assert_close(surfaces[0], torch.tensor([1.0, 2.0, 1.0, 0.0]))
        assert layer.kernel.computes == [(0, 1, 1, 0), (2, 3, 1, 0)]
        assert avg.get_count(0, 0) == 2

    def test_reset_clears_averages(self, make_layer):
        """Test that a layer reset starts every cell from scratch."""
        avg = SuperCellAverage(10, 10, 5)
        layer = make_layer(width=10, height=10, n_clusters=2, prototypes=PROTOTYPES,
                           supercell=avg)
        layer.process(Event(0, 1, 1, 0))

        layer.reset()

        assert avg.get_count(0, 0) == 0

    def test_average_fan_out(self, make_layer):
        """Test that an event on the overlap band updates every containing cell."""
        avg = SuperCellAverage(10, 10, 5, 1)
        layer = make_layer(width=10, height=10, n_clusters=2, prototypes=PROTOTYPES,
                           supercell=avg)

        out = layer.process(Event(0, 5, 5, 0))

        assert len(out) == 4
        assert all(mem.count == 1 for mem in avg.cells)

    def test_supercell_size_mismatch(self):
        """Test that the supercell must cover the layer context."""
        with pytest.raises(LayerConfigError, match="does not match"):
            Layer(8, 8, FakeKernel(), FakeClusterer(2), supercell=SuperCell(10, 10, 5))


class TestLayerClassifier:
    """Tests for the classifier and time-surface-pool capabilities."""

    def test_compute_time_surfaces_does_not_cluster(self, make_layer):
        """Test that surfaces can be sampled before prototypes exist."""
        layer = make_layer(n_clusters=2)

        surfaces = layer.compute_time_surfaces(Event(1, 2, 3, 0))

        torch.testing.assert_close(surfaces[0], torch.tensor([1.0, 2.0, 3.0, 0.0]))
        assert layer.clusterer.calls == []

    def test_prototypes_roundtrip(self, make_layer):
        """Test that prototypes are installed in the clusterer."""
        layer = make_layer(n_clusters=2, prototypes=PROTOTYPES)

        torch.testing.assert_close(layer.get_prototypes(), torch.tensor(PROTOTYPES))
        assert layer.n_clusters == 2

    def test_toggle_learning(self, make_layer):
        """Test that toggling returns the previous state."""
        layer = make_layer(n_clusters=2)

        assert layer.toggle_learning(True) is False
        assert layer.toggle_learning(False) is True

    def test_from_params(self):
        """Test building a layer from modifier parameters."""
        params = ModifierParams(remapper="array", width=10, height=10,
                                supercell_size=5, average=True)

        layer = Layer.from_params(params, FakeKernel(), FakeClusterer(2))

        assert isinstance(layer.remapper, ArrayLayer)
        assert isinstance(layer.supercell, SuperCellAverage)
        assert (layer.width, layer.height) == (10, 10)
