#!/usr/bin/env python3
import numpy as np
import torch
from torch.utils.data import DataLoader, TensorDataset
from sklearn.base import BaseEstimator, TransformerMixin
from typing import List, Optional, Sequence, Tuple, Union
from autoencode.AEErrors import InvalidInputError
from autoencode.DimensionPlanner import DATA_TYPES
from autoencode.VectorCodec import PAD_CHAR, string_to_vector, vector_to_string

Sample = Union[str, Sequence[float], Sequence[bool], np.ndarray]


class SampleNormalizer(BaseEstimator, TransformerMixin):
    """Convert samples of one data type to network vectors and back.

    Works like the sklearn scalers: ``transform`` maps a list of samples to a 2-D float32
    array and ``inverse_transform`` maps network output rows back to samples. ``fit`` is a
    no-op because nothing is learned from the data.

    The declared ``data_type`` alone decides how a sample is treated. A sample that does
    not match it is rejected rather than reinterpreted.

    Args:
        data_type (str): ``"number"``, ``"boolean"`` or ``"string"``.
        sample_size (int): Characters per string sample, or elements per number/boolean sample.
    """

    def __init__(self, data_type = "number", sample_size = 1):
        self.data_type   = data_type
        self.sample_size = sample_size

    def fit(self, X, y=None):
        if self.data_type not in DATA_TYPES:
            raise InvalidInputError(f"data_type must be one of {DATA_TYPES}, got {self.data_type!r}.")
        return self

    def transform(self, X) -> np.ndarray:
        if isinstance(X, str):
            raise InvalidInputError("transform expects a collection of samples, not a single string.")
        vectors = [self.to_vector(x) for x in X]
        if len(vectors) == 0:
            return np.zeros((0, self.vector_size), dtype=np.float32)
        return np.stack(vectors)

    def inverse_transform(self, X) -> List[Sample]:
        if isinstance(X, torch.Tensor):
            X = X.detach().cpu().numpy()
        return [self.from_vector(x) for x in np.atleast_2d(np.asarray(X, dtype=np.float32))]

    @property
    def vector_size(self) -> int:
        return self.sample_size * 8 if self.data_type == "string" else self.sample_size

    def to_vector(self, sample: Sample) -> np.ndarray:
        """Normalize one sample into a float32 vector of length ``vector_size``.

        Raises:
            InvalidInputError: If the sample does not match ``data_type``, has the wrong
                length, or (for strings) is longer than ``sample_size`` characters.
        """
        if self.data_type == "string":
            if not isinstance(sample, str):
                raise InvalidInputError(f"Expected a string sample, got {type(sample).__name__}.")
            # over-long strings are rejected by the codec, never truncated
            return string_to_vector(sample.ljust(self.sample_size, PAD_CHAR), self.sample_size)

        if isinstance(sample, str):
            raise InvalidInputError(f"Got a string sample for {self.data_type} data.")

        try:
            if self.data_type == "boolean":
                vector = np.asarray(sample, dtype=bool).astype(np.float32)
            else:
                vector = np.asarray(sample, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Sample could not be read as {self.data_type} data: {e}") from e

        if vector.ndim != 1 or vector.shape[0] != self.sample_size:
            raise InvalidInputError(f"Expected a flat sample of {self.sample_size} elements, "
                                    f"got shape {vector.shape}.")
        return vector

    def from_vector(self, vector) -> Sample:
        """Convert one network output back to the data type. Numbers are not rounded."""
        vector = np.asarray(vector, dtype=np.float32).ravel()
        if self.data_type == "boolean":
            return vector >= 0.5
        if self.data_type == "string":
            # everything from the first pad character on is padding
            return vector_to_string(vector).split(PAD_CHAR, 1)[0]
        return vector


def make_pair_loader(pairs: List[Tuple[np.ndarray, np.ndarray]],
                     batch_size: Optional[int] = None,
                     shuffle: bool = True,
                     device = "cpu") -> DataLoader:
    """Stack ``(input, output)`` vector pairs into a DataLoader.

    Args:
        pairs: Training pairs. All inputs must share one length, as must all outputs.
        batch_size (int, optional): Mini-batch size. If None, one batch holds every pair.
        shuffle (bool, optional): Shuffle pairs each epoch. Defaults to True.
        device (str, optional): Device the tensors are created on.

    Raises:
        InvalidInputError: If ``pairs`` is empty or ragged.
    """
    if len(pairs) == 0:
        raise InvalidInputError("Training data is empty.")
    try:
        inputs  = np.stack([np.asarray(p[0], dtype=np.float32) for p in pairs])
        outputs = np.stack([np.asarray(p[1], dtype=np.float32) for p in pairs])
    except (TypeError, ValueError, IndexError) as e:
        raise InvalidInputError(f"Malformed training pairs: {e}") from e

    dataset = TensorDataset(torch.tensor(inputs, device=device), torch.tensor(outputs, device=device))
    return DataLoader(dataset, batch_size=batch_size or len(pairs), shuffle=shuffle)
