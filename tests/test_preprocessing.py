import numpy as np
import pandas as pd
import pytest

from src.emulators_trainer.errors import InvalidArgument
from src.emulators_trainer.frames import extract_input_output_df
from src.emulators_trainer.preprocessing import (
    get_minmax_in,
    get_minmax_out,
    getdata,
    maximin_df,
    splitdf,
    traintest_split,
)


def _frame(n: int = 10) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "omega_m": np.linspace(0.1, 0.5, n),
            "h": np.linspace(0.6, 0.8, n),
            "observable": [np.array([k, 2.0 * k, 10.0]) + np.array([0.0, 0.0, k]) for k in range(n)],
        }
    )


def test_minmax_in_and_out() -> None:
    frame = _frame(5)
    _, outputs = extract_input_output_df(frame)

    in_minmax = get_minmax_in(frame, ["omega_m", "h"])
    out_minmax = get_minmax_out(outputs)

    np.testing.assert_allclose(in_minmax, [[0.1, 0.5], [0.6, 0.8]])
    np.testing.assert_allclose(out_minmax, [[0.0, 4.0], [0.0, 8.0], [10.0, 14.0]])


def test_minmax_rejects_bad_inputs() -> None:
    with pytest.raises(InvalidArgument):
        get_minmax_in(_frame(), [])
    with pytest.raises(InvalidArgument):
        get_minmax_in(_frame(), ["sigma_8"])
    with pytest.raises(InvalidArgument):
        get_minmax_out(np.ones((0, 3)))
    with pytest.raises(InvalidArgument):
        get_minmax_out(np.ones(3))


def test_maximin_scales_to_unit_interval_and_keeps_original() -> None:
    frame = _frame(6)
    _, outputs = extract_input_output_df(frame)
    in_minmax = get_minmax_in(frame, ["omega_m", "h"])
    out_minmax = get_minmax_out(outputs)

    scaled = maximin_df(frame, in_minmax, out_minmax)

    assert scaled["omega_m"].min() == pytest.approx(0.0)
    assert scaled["omega_m"].max() == pytest.approx(1.0)
    assert scaled["h"].iloc[0] == pytest.approx(0.0)
    np.testing.assert_allclose(scaled["observable"].iloc[-1], [1.0, 1.0, 1.0])
    np.testing.assert_allclose(scaled["observable"].iloc[0], [0.0, 0.0, 0.0])
    assert frame["omega_m"].max() == pytest.approx(0.5)


def test_maximin_rejects_zero_width_ranges() -> None:
    frame = _frame(3)

    with pytest.raises(InvalidArgument, match="Zero-width"):
        maximin_df(frame, [[0.1, 0.1], [0.6, 0.8]], [[0.0, 1.0]] * 3)


def test_splitdf_sizes_and_disjointness() -> None:
    frame = _frame(10)

    first, second = splitdf(frame, 0.3, rng=np.random.default_rng(0))

    assert len(first) == 3
    assert len(second) == 7
    assert set(first.index).isdisjoint(second.index)
    assert set(first.index) | set(second.index) == set(frame.index)


def test_splitdf_rejects_bad_arguments() -> None:
    with pytest.raises(InvalidArgument):
        splitdf(_frame(), 1.5)
    with pytest.raises(InvalidArgument):
        splitdf(_frame().iloc[0:0], 0.5)


def test_traintest_split_holds_out_test_fraction() -> None:
    train, test = traintest_split(_frame(10), 0.2, rng=np.random.default_rng(1))

    assert len(train) == 8
    assert len(test) == 2


def test_getdata_returns_arrays() -> None:
    x_train, y_train, x_test, y_test = getdata(_frame(10), test_fraction=0.3, rng=np.random.default_rng(2))

    assert x_train.shape == (7, 2)
    assert y_train.shape == (7, 3)
    assert x_test.shape == (3, 2)
    assert y_test.shape == (3, 3)
