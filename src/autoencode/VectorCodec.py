#!/usr/bin/env python3
import numpy as np
from autoencode.AEErrors import InvalidInputError

# strings are padded with this and cut at its first occurrence on decode
PAD_CHAR = " "
BITS_PER_CHAR = 8


def string_to_vector(word: str, word_size: int) -> np.ndarray:
    """Bit-encode a string into a flat float32 vector.

    The string is right-padded with spaces to ``word_size`` characters and every
    character becomes 8 values in {0., 1.}, most significant bit first.

    Args:
        word (str): String of at most ``word_size`` characters, each with a code point < 256.
        word_size (int): Character capacity of the vector.

    Returns:
        np.ndarray: float32 vector of length ``word_size * 8``.

    Raises:
        InvalidInputError: If ``word`` is not a string, is too long, or holds a character
            that does not fit in 8 bits.
    """
    if not isinstance(word, str):
        raise InvalidInputError(f"Expected a string, got {type(word).__name__}.")
    if len(word) > word_size:
        raise InvalidInputError(f"String of length {len(word)} does not fit in word size {word_size}.")

    try:
        raw = word.ljust(word_size, PAD_CHAR).encode("latin-1")
    except UnicodeEncodeError as e:
        raise InvalidInputError(f"Character {word[e.start]!r} is not 8-bit encodable.") from e

    bits = np.unpackbits(np.frombuffer(raw, dtype=np.uint8))
    return bits.astype(np.float32)


def vector_to_string(vector) -> str:
    """Inverse of ``string_to_vector``: threshold at 0.5, pack bits, decode latin-1.

    Padding is returned as-is; truncation at the first space is left to the caller.
    """
    vector = np.asarray(vector, dtype=np.float32).ravel()
    if vector.shape[0] % BITS_PER_CHAR != 0:
        raise InvalidInputError(f"Vector length {vector.shape[0]} is not a multiple of {BITS_PER_CHAR}.")

    bits = (vector >= 0.5).astype(np.uint8)
    return np.packbits(bits).tobytes().decode("latin-1")
