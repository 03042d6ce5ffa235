import numpy as np
import pytest

from src.emulators_trainer.errors import (
    EmptyFeatureSet,
    EmptyPercentileSpec,
    InsufficientSamples,
    InvalidArgument,
    PercentileOutOfRange,
)
from src.emulators_trainer.percentiles import nearest_rank_index, sort_residuals


def test_output_shape_matches_percentiles_and_features() -> None:
    rng = np.random.default_rng(0)
    residuals = rng.random((17, 5))

    table = sort_residuals(residuals, percentiles=(10.0, 50.0, 90.0, 99.0))

    assert table.shape == (4, 5)


def test_default_percentiles_are_non_decreasing_per_column() -> None:
    rng = np.random.default_rng(1)
    residuals = rng.lognormal(size=(40, 6))

    table = sort_residuals(residuals)

    assert table.shape == (3, 6)
    assert np.all(table[0] <= table[1])
    assert np.all(table[1] <= table[2])


def test_identical_rows_return_that_row() -> None:
    row = np.array([0.5, 1.5, 7.0])
    residuals = np.tile(row, (4, 1))

    table = sort_residuals(residuals)

    for percentile_row in table:
        np.testing.assert_array_equal(percentile_row, row)


def test_three_samples_default_percentiles_select_maximum() -> None:
    residuals = np.array([[2.0], [3.0], [1.0]])

    table = sort_residuals(residuals)

    np.testing.assert_array_equal(table[:, 0], [3.0, 3.0, 3.0])


def test_nearest_rank_uses_ceiling_without_interpolation() -> None:
    residuals = np.array([[5.0], [1.0], [4.0], [2.0], [3.0]])

    table = sort_residuals(residuals, percentiles=[25.0, 50.0, 75.0])

    np.testing.assert_array_equal(table[:, 0], [2.0, 3.0, 4.0])


def test_columns_are_sorted_independently() -> None:
    residuals = np.array(
        [
            [1.0, 30.0],
            [2.0, 10.0],
            [3.0, 20.0],
        ]
    )

    table = sort_residuals(residuals, percentiles=[0.0, 50.0, 100.0])

    np.testing.assert_array_equal(table, [[1.0, 10.0], [2.0, 20.0], [3.0, 30.0]])


def test_nearest_rank_index_is_clamped() -> None:
    assert nearest_rank_index(5, 0.0) == 0
    assert nearest_rank_index(5, 100.0) == 4
    assert nearest_rank_index(3, 99.7) == 2
    assert nearest_rank_index(10, 68.0) == 6


def test_input_is_not_modified() -> None:
    residuals = np.array([[3.0], [1.0], [2.0]])
    original = residuals.copy()

    sort_residuals(residuals)

    np.testing.assert_array_equal(residuals, original)


def test_two_rows_are_rejected() -> None:
    with pytest.raises(InsufficientSamples):
        sort_residuals(np.ones((2, 3)))


@pytest.mark.parametrize("percentile", [-10.0, 101.0])
def test_out_of_range_percentiles_are_rejected(percentile: float) -> None:
    with pytest.raises(PercentileOutOfRange):
        sort_residuals(np.ones((4, 2)), percentiles=[50.0, percentile])


def test_empty_percentiles_and_features_are_rejected() -> None:
    with pytest.raises(EmptyPercentileSpec):
        sort_residuals(np.ones((4, 2)), percentiles=[])
    with pytest.raises(EmptyFeatureSet):
        sort_residuals(np.ones((4, 0)))


def test_reducer_errors_are_invalid_arguments() -> None:
    with pytest.raises(InvalidArgument):
        sort_residuals(np.ones(5))
    with pytest.raises(InvalidArgument):
        sort_residuals(np.ones((1, 1)))
