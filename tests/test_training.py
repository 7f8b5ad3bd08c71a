"""End-to-end training on small string vocabularies.

Training is stochastic, so these assert a baseline rather than exact values. Runs are
seeded and pinned to the CPU to keep them repeatable.
"""
import pytest

from autoencode.AutoEncoder import AutoEncoder

TRAIN_OPTIONS = dict(error_thresh=0.0005, iterations=5000, praxis="adam", learning_rate=0.01)


@pytest.mark.parametrize("seed", [0])
def test_example_vocabulary_is_learned(seed):
    words = ["this", "is", "an", "example"]
    ae = AutoEncoder(10, 1, "string", device="cpu", seed=seed)
    attempts = []

    result = ae.train(words, accuracy=1.0, attempts=3, log=attempts.append, **TRAIN_OPTIONS)

    assert result.accuracy >= 0.75
    assert ae.accuracy(words, strict=True) >= 0.75
    assert ae.accuracy(words, strict=False) >= ae.accuracy(words, strict=True)
    assert 1 <= result.attempts <= 3
    assert [a["attempts"] for a in attempts if "attempts" in a] == list(range(1, result.attempts + 1))


def test_cat_round_trip():
    ae = AutoEncoder(5, 2, "string", device="cpu", seed=1)

    ae.train(["cat", "dog", "cow"], accuracy=1.0, attempts=3, **TRAIN_OPTIONS)

    assert ae.decode(ae.encode("cat")) == "cat"
    assert ae.validate("cat")


def test_default_options_learn_the_example_vocabulary():
    # an untrained model scores 0 on these words
    words = ["this", "is", "an", "example"]
    ae = AutoEncoder(10, 1, "string", device="cpu", seed=0)

    result = ae.train(words, error_thresh=0.01, iterations=2000)

    assert result.accuracy >= 0.5
    assert ae.accuracy(words) == result.accuracy
