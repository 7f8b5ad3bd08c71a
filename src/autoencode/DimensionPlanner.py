#!/usr/bin/env python3
from typing import List, Tuple
from autoencode.AEErrors import InvalidInputError
from autoencode.VectorCodec import BITS_PER_CHAR
from autoencode.utils import round_half_up

DATA_TYPES = ("number", "boolean", "string")

# layer index (0 = input layer) of the encoder network whose activation is the encoding
BOTTLENECK_LAYER = 2


class DimensionPlanner(object):
    """Derive encoder/decoder layer sizes from the declared sizes and data type.

    Sizes are declared in sample units: elements for number/boolean data and characters
    for string data. Strings are bit-encoded, so their network ("effective") sizes are
    8 times the declared ones.

    Encoder network: ``effective_decoded -> [transcoded, effective_encoded, transcoded] -> effective_decoded``.
    Its middle hidden layer (``BOTTLENECK_LAYER``) is the compressed representation.

    Decoder network: ``effective_encoded -> [transcoded] -> effective_decoded``.
    """

    def __init__(self, decoded_size, encoded_size, data_type = "number"):
        if data_type not in DATA_TYPES:
            raise InvalidInputError(f"data_type must be one of {DATA_TYPES}, got {data_type!r}.")
        if decoded_size is None or encoded_size is None or decoded_size <= 0 or encoded_size <= 0:
            raise InvalidInputError(f"Sizes must be positive, got decoded={decoded_size}, encoded={encoded_size}.")
        if int(decoded_size) != decoded_size:
            raise InvalidInputError(f"decoded_size must be a whole number, got {decoded_size}.")

        self.decoded_size = int(decoded_size)
        self.encoded_size = encoded_size
        self.data_type    = data_type

        if self.effective_encoded_size() < 1:
            raise InvalidInputError(f"encoded_size {encoded_size} leaves no bottleneck units.")

    def _scale(self) -> int:
        return BITS_PER_CHAR if self.data_type == "string" else 1

    def effective_decoded_size(self) -> int:
        return self.decoded_size * self._scale()

    def effective_encoded_size(self) -> int:
        # string encodings may be declared in fractional characters
        return round_half_up(self.encoded_size * self._scale())

    def transcoded_size(self) -> int:
        return round_half_up((self.effective_encoded_size() + self.effective_decoded_size()) * 0.5)

    def word_size(self) -> int:
        """Capacity of one sample: characters for strings, elements otherwise."""
        return self.effective_decoded_size() // self._scale()

    def nominal_transcoded_size(self) -> int:
        """Midpoint of the declared (not bit-scaled) sizes, stored on the autoencoder."""
        return round_half_up((self.encoded_size + self.decoded_size) * 0.5)

    def encoder_shape(self) -> Tuple[int, List[int], int]:
        """Return ``(input_size, hidden_layers, output_size)`` of the encoder network."""
        t = self.transcoded_size()
        return self.effective_decoded_size(), [t, self.effective_encoded_size(), t], self.effective_decoded_size()

    def decoder_shape(self) -> Tuple[int, List[int], int]:
        """Return ``(input_size, hidden_layers, output_size)`` of the decoder network."""
        return self.effective_encoded_size(), [self.transcoded_size()], self.effective_decoded_size()

    def __repr__(self):
        return (f"DimensionPlanner(decoded_size={self.decoded_size}, "
                f"encoded_size={self.encoded_size}, data_type={self.data_type!r})")
