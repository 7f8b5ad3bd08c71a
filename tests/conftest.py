import numpy as np
import pytest

from autoencode.FeedForwardNet import FeedForwardNet


class RecordingNet(object):
    """Stand-in network that records training calls.

    ``run_to_layer`` returns all zeros before the first ``train`` call and all ones after it,
    so tests can tell which encoder state produced a decoder's training inputs.
    """

    def __init__(self, input_size, output_size, hidden_layers, journal):
        self.input_size    = input_size
        self.output_size   = output_size
        self.hidden_layers = list(hidden_layers)
        self.outputs       = []
        self.journal       = journal
        self.trained       = 0

    @property
    def sizes(self):
        return [self.input_size, *self.hidden_layers, self.output_size]

    def run(self, vector):
        return np.full(self.output_size, 0.25, dtype=np.float32)

    def run_to_layer(self, vector, layer):
        width = self.sizes[layer]
        return np.full(width, 1.0 if self.trained else 0.0, dtype=np.float32)

    def train(self, pairs, **options):
        self.trained += 1
        self.journal.append((self, [tuple(np.asarray(p[0]).tolist()) for p in pairs], dict(options)))
        return {"error": 0.0, "iterations": 1}

    async def train_async(self, pairs, **options):
        return self.train(pairs, **options)

    def to_json(self):
        return {"sizes": self.sizes}

    def from_json(self, json_obj):
        pass


@pytest.fixture
def journal():
    return []


@pytest.fixture
def recording_factory(journal):
    def factory(input_size, output_size, hidden_layers):
        return RecordingNet(input_size, output_size, hidden_layers, journal)
    return factory


@pytest.fixture
def cpu_net_factory():
    def factory(input_size, output_size, hidden_layers):
        return FeedForwardNet(input_size, output_size, hidden_layers, device="cpu")
    return factory
