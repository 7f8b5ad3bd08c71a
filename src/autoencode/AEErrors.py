#!/usr/bin/env python3
"""Exceptions raised by the autoencode package.

Every error is fatal to the operation that raised it. The only retrying that
happens anywhere is the accuracy-targeted loop in ``AutoEncoder.train``.
"""


class AutoEncoderError(Exception):
    """Base class for all autoencode errors."""


class UnsupportedOperationError(AutoEncoderError, NotImplementedError):
    """Operation is not defined for the autoencoder's data type (e.g. ``validate`` on numbers)."""


class InvalidInputError(AutoEncoderError, ValueError):
    """Malformed training data, a mis-sized vector, or a sample that doesn't match the data type."""


class SerializationError(AutoEncoderError, ValueError):
    """Malformed or inconsistent JSON handed to ``parse`` / ``from_json``."""
