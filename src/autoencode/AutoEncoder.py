#!/usr/bin/env python3
import asyncio
import json
import numbers
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np
import torch

from autoencode.AEErrors import InvalidInputError, SerializationError, UnsupportedOperationError
from autoencode.DataProcessors import Sample, SampleNormalizer
from autoencode.DimensionPlanner import BOTTLENECK_LAYER, DimensionPlanner
from autoencode.FeedForwardNet import FeedForwardNet, TrainableNetwork
import autoencode.utils as utils


@dataclass
class TrainingResult:
    """Outcome of ``AutoEncoder.train``.

    ``attempts`` counts the training passes run. Compare ``accuracy`` against the requested
    target to find out whether it was reached.
    """
    accuracy: float
    attempts: int
    encoder_stats: Dict[str, float] = field(default_factory=dict)
    decoder_stats: Dict[str, float] = field(default_factory=dict)


class AutoEncoder(object):
    """A pair of networks that compress samples and reconstruct them.

    The encoder network is trained to reproduce its input through a bottleneck
    (``effective_decoded -> transcoded -> effective_encoded -> transcoded -> effective_decoded``).
    Only its layers up to the bottleneck are used to encode; the rest of it exists to give
    training a reconstruction target. The decoder network
    (``effective_encoded -> transcoded -> effective_decoded``) is then trained on the
    encoder's actual bottleneck output, so it learns the inverse of the trained encoder.

    Samples are number vectors, boolean vectors, or strings of at most ``decoded_data_size``
    characters. Strings are bit-encoded, 8 network units per character.

    Example::

        ae = AutoEncoder(10, 1, "string")
        ae.train(["this", "is", "an", "example"], error_thresh=0.01, iterations=2000)
        ae.decode(ae.encode("example"))   # "example" once trained well enough

    Attributes:
        data_type (str): ``"number"``, ``"boolean"`` or ``"string"``.
        decoded_data_size (int): Size of a sample (elements or characters).
        encoded_data_size (float): Size of the encoding (elements or characters).
        transcoded_data_size (int): ``round((encoded_data_size + decoded_data_size) / 2)``.
        encoder (TrainableNetwork): Encoder network.
        decoder (TrainableNetwork): Decoder network.
    """

    @staticmethod
    def parse(json_string: Union[str, bytes], **kwargs) -> "AutoEncoder":
        """Rebuild an ``AutoEncoder`` from the output of ``stringify()``.

        Keyword arguments (``network_factory``, ``device``) go to the constructor.

        Raises:
            SerializationError: If the string is not valid autoencoder JSON.
        """
        json_obj = _loads(json_string)
        if not isinstance(json_obj, dict):
            raise SerializationError(f"Expected a JSON object, got {type(json_obj).__name__}.")
        try:
            autoencoder = AutoEncoder(json_obj["decodedDataSize"],
                                      json_obj["encodedDataSize"],
                                      json_obj.get("dataType", "number"),
                                      **kwargs)
        except (KeyError, TypeError, InvalidInputError) as e:
            raise SerializationError(f"Cannot build an autoencoder from JSON: {e!r}") from e

        autoencoder.from_json(json_obj)
        return autoencoder

    @staticmethod
    def stringify_autoencoder(autoencoder: "AutoEncoder") -> str:
        return autoencoder.stringify()

    def __init__(self,
                 decoded_data_size: int,
                 encoded_data_size: float,
                 data_type = "number",
                 *,
                 network_factory: Optional[Callable[[int, int, List[int]], TrainableNetwork]] = None,
                 device = "auto",
                 seed = None):
        """Create an untrained autoencoder.

        Args:
            decoded_data_size (int): Size of the data before encoding and after decoding.
            encoded_data_size (float): Size of the encoded data. For strings this is in
                characters and may be fractional (``0.5`` = 4 network units).
            data_type (str, optional): ``"number"``, ``"boolean"`` or ``"string"``.
                Defaults to ``"number"``.
            network_factory (callable, optional): ``factory(input_size, output_size,
                hidden_layers)`` returning a ``TrainableNetwork``. Defaults to
                ``FeedForwardNet`` on ``device``.
            device (str, optional): ``"auto"``, ``"cuda"`` or ``"cpu"`` for the default
                networks. Defaults to ``"auto"``.
            seed (int, optional): If given, seeds all RNGs before the networks are built.

        Raises:
            InvalidInputError: If the sizes or data type are invalid.
        """
        utils.set_seed(seed)

        if network_factory is None:
            network_factory = partial(FeedForwardNet, device=device)
        self.network_factory = network_factory

        self._configure(decoded_data_size, encoded_data_size, data_type)
        self.encoder, self.decoder = self._build_networks(self.planner)

    def _configure(self, decoded_data_size, encoded_data_size, data_type):
        self.planner              = DimensionPlanner(decoded_data_size, encoded_data_size, data_type)
        self.data_type            = data_type
        self.decoded_data_size    = self.planner.decoded_size
        self.encoded_data_size    = encoded_data_size
        self.transcoded_data_size = self.planner.nominal_transcoded_size()
        self.normalizer           = SampleNormalizer(data_type, self.planner.word_size()).fit(None)

    def _build_networks(self, planner: DimensionPlanner) -> Tuple[TrainableNetwork, TrainableNetwork]:
        enc_in, enc_hidden, enc_out = planner.encoder_shape()
        dec_in, dec_hidden, dec_out = planner.decoder_shape()
        return (self.network_factory(enc_in, enc_out, enc_hidden),
                self.network_factory(dec_in, dec_out, dec_hidden))

    # encoding

    def encode(self, sample: Sample) -> np.ndarray:
        """Return the bottleneck activation for ``sample`` (float32, ``effective_encoded_size`` long).

        Raises:
            InvalidInputError: If the sample does not match the data type or size.
        """
        vector = self.normalizer.to_vector(sample)
        encoded = self.encoder.run_to_layer(vector, BOTTLENECK_LAYER)
        return np.asarray(encoded, dtype=np.float32).ravel()

    def decode(self, encoded_data) -> Sample:
        """Reconstruct a sample from an encoding.

        Returns a string for string data, a bool array for boolean data and a float32 array
        (not rounded) for number data.
        """
        if isinstance(encoded_data, torch.Tensor):
            encoded_data = encoded_data.detach().cpu().numpy()
        encoded_data = np.asarray(encoded_data, dtype=np.float32).ravel()
        if encoded_data.shape[0] != self.planner.effective_encoded_size():
            raise InvalidInputError(f"Expected an encoding of {self.planner.effective_encoded_size()} "
                                    f"values, got {encoded_data.shape[0]}.")

        return self.normalizer.from_vector(self.decoder.run(encoded_data))

    def run(self, sample: Sample) -> Sample:
        """Encode then decode ``sample``."""
        return self.decode(self.encode(sample))

    def validate(self, sample: Sample) -> bool:
        """Whether ``sample`` survives an encode/decode round trip unchanged.

        Raises:
            UnsupportedOperationError: For number and boolean data.
        """
        if self.data_type != "string":
            raise UnsupportedOperationError(f"validate() not yet implemented for data type '{self.data_type}'.")
        return self.run(sample) == sample

    # metrics

    def accuracy(self, data, strict = True) -> float:
        """Score how well ``data`` is reconstructed, in [0, 1].

        Args:
            data: A single sample, or a collection of samples whose scores are averaged.
                For strings, a nested list counts as one group scored by the mean of its
                strings, and the groups are then averaged.
            strict (bool, optional): For strings, score 1/0 on an exact match. If False,
                score the fraction of positions where the characters agree. Ignored for
                number and boolean data. Defaults to True.

        Returns:
            float: Accuracy. Samples that cannot be scored (e.g. an empty decoded string)
            count as 0, and an empty collection scores 0.
        """
        if not isinstance(data, (str, list, tuple, np.ndarray, torch.Tensor)):
            data = list(data)
        if self._is_single_sample(data):
            return utils.nan_to_zero(self._sample_accuracy(data, strict))

        scores = [self._group_or_sample_accuracy(sample, strict) for sample in data]
        if len(scores) == 0:
            return 0.0
        return float(np.mean(scores))

    def _group_or_sample_accuracy(self, sample, strict) -> float:
        # a nested list of strings is one group, scored by the mean of its strings
        if self.data_type == "string" and not isinstance(sample, str) and _is_sequence(sample):
            scores = [self._group_or_sample_accuracy(s, strict) for s in sample]
            return float(np.mean(scores)) if len(scores) > 0 else 0.0
        return utils.nan_to_zero(self._sample_accuracy(sample, strict))

    def _is_single_sample(self, data) -> bool:
        if isinstance(data, str):
            return True
        if isinstance(data, np.ndarray):
            return data.ndim == 1 and data.dtype.kind != "U"
        if isinstance(data, torch.Tensor):
            return data.ndim == 1
        return len(data) > 0 and isinstance(data[0], (numbers.Number, np.generic))

    def _sample_accuracy(self, sample: Sample, strict = True) -> float:
        decoded = self.run(sample)

        if self.data_type == "string":
            if strict:
                return 1.0 if decoded == sample else 0.0
            if len(decoded) == 0:
                return float("nan")
            matches = sum(1 for i, c in enumerate(decoded) if i < len(sample) and sample[i] == c)
            return matches / len(decoded)

        expected = self.normalizer.to_vector(sample)
        decoded  = np.asarray(decoded, dtype=np.float64)
        if decoded.size == 0:
            return float("nan")
        return float(np.mean(np.floor(decoded + 0.5) == expected))

    def compression_scale(self) -> float:
        return self.encoded_data_size / self.decoded_data_size

    def compression_rate(self) -> float:
        return 1.0 - self.compression_scale()

    # training

    def train(self, data, *, accuracy = None, attempts = None, log = None, **options) -> TrainingResult:
        """Blocking version of ``train_async``. Must not be called from a running event loop."""
        return asyncio.run(self.train_async(data, accuracy=accuracy, attempts=attempts, log=log, **options))

    async def train_async(self, data, *, accuracy = None, attempts = None, log = None,
                          **options) -> TrainingResult:
        """Train the encoder, then the decoder, on a data set.

        Without ``accuracy`` a single pass is made. With it, passes are repeated until
        ``self.accuracy(data) >= accuracy`` or ``attempts`` passes have run. Weights are kept
        between passes, so each pass continues training where the last one stopped.

        Args:
            data: Collection of samples of this autoencoder's data type.
            accuracy (float, optional): Target accuracy for repeated passes.
            attempts (int, optional): Maximum number of passes when ``accuracy`` is given.
                Defaults to 1.
            log (bool or callable, optional): ``True`` is forwarded to the network trainers,
                which print their epoch losses. A callable is forwarded, and receives the
                trainers' ``{"iterations", "error"}`` records, only in single-pass mode. In
                accuracy-targeted mode it receives only ``{"attempts": n, "error": 1 - accuracy}``
                after every pass.
            **options: Passed unchanged to both network trainers (``error_thresh``,
                ``iterations``, ``learning_rate``, ...). See
                ``FeedForwardNet.DEFAULT_TRAIN_OPTIONS``.

        Returns:
            TrainingResult: Final accuracy and number of passes.

        Raises:
            InvalidInputError: If ``data`` is empty or a sample does not match the data type.
        """
        samples, vectors = self._prepare_dataset(data)
        if log is not None:
            options["log"] = log

        if accuracy is None:
            encoder_stats, decoder_stats = await self._train_pass(samples, vectors, options)
            return TrainingResult(self.accuracy(samples), 1, encoder_stats, decoder_stats)

        if callable(log):
            # the callable reports passes here, not network epochs
            options.pop("log")

        max_attempts  = 1 if attempts is None else int(attempts)
        current       = 0.0
        attempt_count = 0
        encoder_stats, decoder_stats = {}, {}

        # at least one pass, then retry while below target
        while attempt_count < max_attempts:
            attempt_count += 1
            encoder_stats, decoder_stats = await self._train_pass(samples, vectors, options)
            current = self.accuracy(samples)

            if callable(log):
                log({"attempts": attempt_count, "error": 1.0 - current})
            if current >= accuracy:
                break

        return TrainingResult(current, attempt_count, encoder_stats, decoder_stats)

    def _prepare_dataset(self, data) -> Tuple[List[Sample], List[np.ndarray]]:
        if data is None or isinstance(data, (str, bytes)):
            raise InvalidInputError("Training data must be a collection of samples.")
        try:
            samples = list(data)
        except TypeError as e:
            raise InvalidInputError(f"Training data must be a collection of samples: {e}") from e
        if len(samples) == 0:
            raise InvalidInputError("Training data is empty.")

        # reject mismatched samples before any network is touched
        vectors = [self.normalizer.to_vector(sample) for sample in samples]
        return samples, vectors

    async def _train_pass(self, samples, vectors, options) -> Tuple[Dict[str, float], Dict[str, float]]:
        encoder_pairs = [(v, v) for v in vectors]
        encoder_stats = await self.encoder.train_async(encoder_pairs, **options)

        # targets come from the encoder as just trained
        decoder_pairs = [(self.encode(s), v) for s, v in zip(samples, vectors)]
        decoder_stats = await self.decoder.train_async(decoder_pairs, **options)

        return encoder_stats, decoder_stats

    def plot_losses(self, out_prefix = "AElossplot", log = True) -> List[str]:
        """Write ``<out_prefix>.encoder.loss.pdf`` and ``<out_prefix>.decoder.loss.pdf``."""
        return [utils.make_loss_plots(net.train_loss, out_prefix=f"{out_prefix}.{name}", log=log)
                for name, net in (("encoder", self.encoder), ("decoder", self.decoder))]

    # serialization

    def to_json(self) -> Dict[str, Any]:
        return {"decodedDataSize":    self.decoded_data_size,
                "transcodedDataSize": self.transcoded_data_size,
                "encodedDataSize":    self.encoded_data_size,
                "dataType":           self.data_type,
                "encoder":            self.encoder.to_json(),
                "decoder":            self.decoder.to_json()}

    def from_json(self, json_obj: Union[Dict[str, Any], str, bytes]) -> None:
        """Load sizes, data type and both networks from ``to_json()`` output.

        Nothing is changed unless the whole object loads.

        Raises:
            SerializationError: If the object is malformed or its parts disagree.
        """
        if isinstance(json_obj, (str, bytes)):
            json_obj = _loads(json_obj)
        if not isinstance(json_obj, dict):
            raise SerializationError(f"Expected a JSON object, got {type(json_obj).__name__}.")

        try:
            decoded_size = json_obj["decodedDataSize"]
            encoded_size = json_obj["encodedDataSize"]
            data_type    = json_obj.get("dataType", self.data_type)
            encoder_json = json_obj["encoder"]
            decoder_json = json_obj["decoder"]
            planner      = DimensionPlanner(decoded_size, encoded_size, data_type)
        except (KeyError, TypeError, InvalidInputError) as e:
            raise SerializationError(f"Malformed autoencoder JSON: {e!r}") from e

        stored_transcoded = json_obj.get("transcodedDataSize")
        if stored_transcoded is not None and stored_transcoded != planner.nominal_transcoded_size():
            raise SerializationError(f"transcodedDataSize {stored_transcoded} does not match sizes "
                                     f"{decoded_size} and {encoded_size}.")

        encoder, decoder = self._build_networks(planner)
        encoder.from_json(encoder_json)
        decoder.from_json(decoder_json)

        for name, net, (n_in, hidden, n_out) in (("encoder", encoder, planner.encoder_shape()),
                                                 ("decoder", decoder, planner.decoder_shape())):
            if list(net.sizes) != [n_in, *hidden, n_out]:
                raise SerializationError(f"{name} sizes {list(net.sizes)} do not match the declared "
                                         f"data sizes (expected {[n_in, *hidden, n_out]}).")

        self._configure(decoded_size, encoded_size, data_type)
        self.encoder, self.decoder = encoder, decoder

    def stringify(self) -> str:
        return json.dumps(self.to_json())

    def __repr__(self):
        return (f"AutoEncoder({self.decoded_data_size}, {self.encoded_data_size}, "
                f"{self.data_type!r})")


def _loads(json_string) -> Any:
    try:
        return json.loads(json_string)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Invalid JSON: {e}") from e


def _is_sequence(obj) -> bool:
    return isinstance(obj, (list, tuple, np.ndarray))
