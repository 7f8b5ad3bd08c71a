import pytest

from autoencode.AEErrors import InvalidInputError
from autoencode.DimensionPlanner import BOTTLENECK_LAYER, DimensionPlanner


def test_string_sizes_are_bit_scaled():
    planner = DimensionPlanner(10, 1, "string")

    assert planner.effective_decoded_size() == 80
    assert planner.effective_encoded_size() == 8
    assert planner.transcoded_size() == 44
    assert planner.word_size() == 10
    assert planner.nominal_transcoded_size() == 6


def test_network_shapes():
    planner = DimensionPlanner(10, 1, "string")

    assert planner.encoder_shape() == (80, [44, 8, 44], 80)
    assert planner.decoder_shape() == (8, [44], 80)
    # layer 0 is the input, so the bottleneck is the second hidden layer
    assert planner.encoder_shape()[1][BOTTLENECK_LAYER - 1] == planner.effective_encoded_size()


@pytest.mark.parametrize("data_type", ["number", "boolean"])
def test_non_string_sizes_pass_through(data_type):
    planner = DimensionPlanner(6, 2, data_type)

    assert planner.effective_decoded_size() == 6
    assert planner.effective_encoded_size() == 2
    assert planner.transcoded_size() == 4
    assert planner.word_size() == 6
    assert planner.encoder_shape() == (6, [4, 2, 4], 6)


@pytest.mark.parametrize("decoded, encoded, expected", [
    (10, 1, 6),    # 5.5 rounds up
    (3, 2, 3),     # 2.5 rounds up, not to even
    (5, 1, 3),
    (100, 20, 60),
    (1, 1, 1),
])
def test_transcoded_is_rounded_midpoint(decoded, encoded, expected):
    assert DimensionPlanner(decoded, encoded).nominal_transcoded_size() == expected
    assert DimensionPlanner(decoded, encoded).transcoded_size() == expected


def test_fractional_string_encoding():
    planner = DimensionPlanner(10, 0.5, "string")

    assert planner.effective_encoded_size() == 4
    assert planner.transcoded_size() == 42


@pytest.mark.parametrize("decoded, encoded, data_type", [
    (10, 1, "float"),
    (0, 1, "number"),
    (10, 0, "number"),
    (10, -1, "string"),
    (2.5, 1, "number"),
    (10, 0.01, "string"),
])
def test_invalid_plans_are_rejected(decoded, encoded, data_type):
    with pytest.raises(InvalidInputError):
        DimensionPlanner(decoded, encoded, data_type)
