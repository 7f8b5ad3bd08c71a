import numpy as np
import pytest
import torch

from autoencode.AEErrors import InvalidInputError
from autoencode.DataProcessors import SampleNormalizer, make_pair_loader
from autoencode.VectorCodec import string_to_vector


def test_string_sample_is_padded_then_encoded():
    normalizer = SampleNormalizer("string", 5)

    vector = normalizer.to_vector("cat")

    assert vector.shape == (40,)
    np.testing.assert_array_equal(vector, string_to_vector("cat  ", 5))


def test_string_decode_cuts_at_first_space():
    normalizer = SampleNormalizer("string", 5)

    assert normalizer.from_vector(string_to_vector("cat  ", 5)) == "cat"
    assert normalizer.from_vector(string_to_vector("a b", 5)) == "a"
    assert normalizer.from_vector(string_to_vector("horse", 5)) == "horse"


def test_boolean_samples_become_zero_one():
    normalizer = SampleNormalizer("boolean", 3)

    np.testing.assert_array_equal(normalizer.to_vector([True, False, True]), [1.0, 0.0, 1.0])
    np.testing.assert_array_equal(normalizer.from_vector([0.7, 0.49, 0.5]), [True, False, True])


def test_number_samples_pass_through_unrounded():
    normalizer = SampleNormalizer("number", 2)

    np.testing.assert_array_equal(normalizer.to_vector([0.25, 3]), np.array([0.25, 3], dtype=np.float32))
    np.testing.assert_array_equal(normalizer.from_vector([0.26, 0.74]), np.array([0.26, 0.74], dtype=np.float32))


@pytest.mark.parametrize("data_type, size, sample", [
    ("string", 5, [1, 0]),
    ("number", 2, "ab"),
    ("boolean", 2, "ab"),
    ("string", 3, "toolong"),
    ("number", 2, [1, 2, 3]),
    ("number", 2, [[1, 2]]),
    ("number", 2, ["x", "y"]),
])
def test_mismatched_samples_are_rejected(data_type, size, sample):
    with pytest.raises(InvalidInputError):
        SampleNormalizer(data_type, size).to_vector(sample)


def test_transform_and_inverse_transform():
    normalizer = SampleNormalizer("string", 4).fit(None)

    X = normalizer.transform(["ab", "abcd"])

    assert X.shape == (2, 32)
    assert normalizer.inverse_transform(X) == ["ab", "abcd"]
    assert normalizer.inverse_transform(torch.tensor(X)) == ["ab", "abcd"]
    assert normalizer.transform([]).shape == (0, 32)


def test_fit_rejects_unknown_type():
    with pytest.raises(InvalidInputError):
        SampleNormalizer("float", 2).fit(None)


def test_pair_loader_batches():
    pairs = [(np.ones(3), np.zeros(2)) for _ in range(5)]

    full = make_pair_loader(pairs)
    mini = make_pair_loader(pairs, batch_size=2, shuffle=False)

    assert len(full) == 1
    x, y = next(iter(full))
    assert x.shape == (5, 3) and y.shape == (5, 2)
    assert [len(x) for x, _ in mini] == [2, 2, 1]


@pytest.mark.parametrize("pairs", [[], [(np.ones(3), np.ones(2)), (np.ones(2), np.ones(2))]])
def test_pair_loader_rejects_bad_data(pairs):
    with pytest.raises(InvalidInputError):
        make_pair_loader(pairs)
