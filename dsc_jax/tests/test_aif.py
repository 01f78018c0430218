import jax.numpy as jnp
import numpy as np
import pytest
from dsc_jax.signal_models.aif import (
    ArterialInputFunction, aif_from_signal, load_arterial_signal, shift_aif, upsample_aif
)

CURVE = jnp.arange(1.0, 11.0)


def test_aif_from_signal():
    artsig = np.array([100.0, 50.0, 25.0, 100.0])
    te = 0.02
    aif = aif_from_signal(artsig, te)

    assert aif[0] == 0.0
    np.testing.assert_allclose(aif[1], np.log(2.0) / te)
    np.testing.assert_allclose(aif[2], np.log(4.0) / te)
    np.testing.assert_allclose(aif[3], 0.0, atol=1e-12)


def test_upsample_linear():
    aif_low = jnp.array([0.0, 2.0, 6.0])
    aif = upsample_aif(aif_low, 2)

    assert aif.shape == (5,)
    np.testing.assert_allclose(aif, [0.0, 1.0, 2.0, 4.0, 6.0])
    # No refinement leaves the curve untouched
    np.testing.assert_allclose(upsample_aif(aif_low, 1), aif_low)


def test_shift_zero_maps_first_sample_to_zero():
    shifted = shift_aif(CURVE, 0.0, 1.0)
    assert shifted[0] == 0.0
    np.testing.assert_array_equal(shifted[1:], CURVE[1:])


def test_shift_whole_samples():
    shifted = shift_aif(CURVE, 2.0, 1.0)
    np.testing.assert_allclose(shifted, [0, 0, 0, 2, 3, 4, 5, 6, 7, 8])


def test_shift_fractional():
    shifted = shift_aif(CURVE, 0.5, 1.0)
    # First sample interpolates towards zero, the rest between neighbours
    np.testing.assert_allclose(shifted, CURVE - 0.5)


def test_shift_negative_holds_final_value():
    shifted = shift_aif(CURVE, -1.5, 1.0)
    expected = [2.5, 3.5, 4.5, 5.5, 6.5, 7.5, 8.5, 9.5, 10.0, 10.0]
    np.testing.assert_allclose(shifted, expected)


def test_shift_saturates_beyond_grid():
    np.testing.assert_array_equal(shift_aif(CURVE, 100.0, 1.0), jnp.zeros(10))
    np.testing.assert_array_equal(shift_aif(CURVE, -100.0, 1.0), jnp.full(10, CURVE[-1]))


def test_shift_far_past_grid_in_single_precision():
    curve = jnp.arange(1.0, 11.0, dtype=jnp.float32)
    np.testing.assert_array_equal(shift_aif(curve, -3e9, 1.0), jnp.full(10, 10.0))
    np.testing.assert_array_equal(shift_aif(curve, 3e9, 1.0), jnp.zeros(10))


def test_shift_respects_grid_spacing():
    # Half a sample at hdelt=0.5 is a shift of 0.25 s
    np.testing.assert_allclose(shift_aif(CURVE, 0.25, 0.5), CURVE - 0.5)


def test_arterial_input_function(artsig):
    aif = ArterialInputFunction.from_signal(artsig, 0.03, upsample=3)

    assert aif.aif_low.shape == (40,)
    assert len(aif) == 39 * 3 + 1
    np.testing.assert_allclose(aif.aif[::3], aif.aif_low)
    np.testing.assert_array_equal(aif.shifted(0.0, 1.0 / 3)[1:], aif.aif[1:])


def test_load_arterial_signal(aif_file, artsig):
    loaded = load_arterial_signal(aif_file)
    np.testing.assert_allclose(loaded, artsig)


def test_load_arterial_signal_row_vector(tmp_path):
    path = tmp_path / "row.txt"
    np.savetxt(path, np.array([[10.0, 8.0, 9.0]]))
    np.testing.assert_allclose(load_arterial_signal(path), [10.0, 8.0, 9.0])


def test_load_arterial_signal_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_arterial_signal(tmp_path / "missing.txt")

    matrix = tmp_path / "matrix.txt"
    np.savetxt(matrix, np.ones((4, 2)))
    with pytest.raises(ValueError):
        load_arterial_signal(matrix)

    zero_baseline = tmp_path / "zero.txt"
    np.savetxt(zero_baseline, [0.0, 1.0, 2.0])
    with pytest.raises(ValueError):
        load_arterial_signal(zero_baseline)
