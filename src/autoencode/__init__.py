"""autoencode: compress fixed-size samples with an encoder/decoder network pair.

Samples are number vectors, boolean vectors or short strings. An ``AutoEncoder`` owns two
feed-forward networks: an encoder whose bottleneck layer is the compressed representation,
and a decoder trained to map that representation back to the sample.

Key modules:
    - ``autoencode.AutoEncoder``: The orchestrator (encode/decode/train/accuracy/JSON).
      See ``autoencode.AutoEncoder.AutoEncoder``.
    - ``autoencode.DimensionPlanner``: Layer sizes derived from the declared sizes and data type.
    - ``autoencode.DataProcessors``: ``SampleNormalizer`` (samples <-> vectors) and data loaders.
    - ``autoencode.FeedForwardNet``: The ``TrainableNetwork`` protocol and its PyTorch
      implementation. The model itself is ``autoencode.AEModel.MLP``.
    - ``autoencode.AELoss``: Stateful reconstruction loss used during training.
    - ``autoencode.VectorCodec``: String <-> bit vector encoding.
    - ``autoencode.utils``: Seeding, config files, loss plots.

Typical workflow:
    1. ``ae = AutoEncoder(decoded_size, encoded_size, "string")``.
    2. ``ae.train(samples, error_thresh=0.01, iterations=2000)`` (or ``await ae.train_async(...)``).
    3. ``ae.encode(sample)`` / ``ae.decode(encoding)`` / ``ae.accuracy(samples)``.
    4. ``ae.stringify()`` and ``AutoEncoder.parse(...)`` to save and restore.
"""

from . import utils
from . import AEErrors
from . import VectorCodec
from . import DimensionPlanner
from . import DataProcessors
from . import AEModel
from . import AELoss
from . import FeedForwardNet
from . import AutoEncoder

from .AEErrors import AutoEncoderError, InvalidInputError, SerializationError, UnsupportedOperationError
