import jax
import jax.numpy as jnp
import numpy as np
import pytest
from dsc_jax.core.acquisition import DSCAcquisitionScheme
from dsc_jax.core.layout import build_layout
from dsc_jax.distributions import GammaResidue
from dsc_jax.signal_models.aif import ArterialInputFunction
from dsc_jax.signal_models.dsc import DSCModel, finite_or_zero, g_dsc

TE = 0.03


def make_model(artsig, upsample=1, scheme='simple', **toggles):
    acq = DSCAcquisitionScheme(len(artsig), 1.0, TE, upsample=upsample)
    aif = ArterialInputFunction.from_signal(artsig, TE, upsample=upsample)
    return DSCModel(acq, aif, build_layout(**toggles), scheme=scheme)


def test_signal_shape_and_baseline(artsig):
    model = make_model(artsig)
    signal = model(jnp.array([0.05, 100.0]))

    assert signal.shape == (40,)
    assert jnp.all(jnp.isfinite(signal))
    # No tracer has arrived at the first time point
    np.testing.assert_allclose(signal[0], 100.0)
    assert jnp.all(signal <= 100.0 + 1e-9)
    assert jnp.min(signal) < 99.0


@pytest.mark.parametrize("scheme", ['simple', 'voltera'])
def test_concentration_linear_in_cbf(artsig, scheme):
    model = make_model(artsig, scheme=scheme, infer_mtt=True, infer_lambda=True)
    c1 = model.concentration(jnp.array([0.03, 1.2, 1.5, 100.0]))
    c2 = model.concentration(jnp.array([0.06, 1.2, 1.5, 100.0]))
    np.testing.assert_allclose(c2, 2 * c1, rtol=1e-12)


def test_negative_values_are_clamped(artsig):
    model = make_model(artsig)
    clamped = model(jnp.array([-1.0, 100.0]))
    np.testing.assert_allclose(clamped, jnp.full(40, 100.0))

    # Negative sig0 gives a zero signal rather than a negative one
    np.testing.assert_allclose(model(jnp.array([0.05, -10.0])), jnp.zeros(40))


def test_log_domain_parameters_may_be_negative(artsig):
    model = make_model(artsig, infer_mtt=True)
    short = model.residue(jnp.array([0.05, -1.0, 100.0]))
    long = model.residue(jnp.array([0.05, 1.0, 100.0]))
    assert jnp.all(short <= long + 1e-12)
    assert jnp.any(short < long)


def test_residue_starts_at_one_with_retention(artsig):
    model = make_model(artsig, infer_mtt=True, infer_ret=True)
    residue = model.residue(jnp.array([0.05, 1.0, 100.0, 0.7]))
    assert residue[0] == 1.0
    np.testing.assert_allclose(residue[-1], jnp.tanh(0.7), atol=1e-6)


def test_residue_matches_gamma_residue(artsig):
    model = make_model(artsig, infer_mtt=True, infer_lambda=True)
    expected = GammaResidue(transitm=1.2, lambda_=0.4)(model.acquisition.htsamp)
    np.testing.assert_allclose(model.residue(jnp.array([0.05, 1.2, 0.4, 100.0])), expected)


def test_delay_shifts_signal(artsig):
    model = make_model(artsig, infer_delay=True)
    early = model(jnp.array([0.05, 0.0, 100.0]))
    late = model(jnp.array([0.05, 3.0, 100.0]))
    # Whole-sample delays move the curve by the same number of samples
    np.testing.assert_allclose(late[3:], early[:-3], rtol=1e-10)


def test_delay_is_clipped(artsig):
    model = make_model(artsig, infer_delay=True)
    limit = (40 // 2) * 1.0
    np.testing.assert_allclose(
        model(jnp.array([0.05, 1000.0, 100.0])),
        model(jnp.array([0.05, limit, 100.0])),
    )
    np.testing.assert_allclose(
        model(jnp.array([0.05, -1000.0, 100.0])),
        model(jnp.array([0.05, -limit, 100.0])),
    )


def test_arterial_component(artsig):
    tissue_only = make_model(artsig)
    with_art = make_model(artsig, infer_art=True)

    base = tissue_only(jnp.array([0.05, 100.0]))
    np.testing.assert_allclose(with_art(jnp.array([0.05, 100.0, 0.0, 0.0])), base)

    # A positive arterial volume adds signal loss
    art = with_art(jnp.array([0.05, 100.0, 0.02, 0.0]))
    assert jnp.all(art <= base + 1e-9)
    assert jnp.any(art < base - 1e-6)


def test_upsampled_grid(artsig):
    coarse = make_model(artsig, upsample=1)
    fine = make_model(artsig, upsample=4)

    assert fine.acquisition.n_internal == 39 * 4 + 1
    signal = fine(jnp.array([0.05, 100.0]))
    assert signal.shape == (40,)
    np.testing.assert_allclose(signal[0], 100.0)
    # Both grids describe the same curve
    np.testing.assert_allclose(signal, coarse(jnp.array([0.05, 100.0])), rtol=0.05)


def test_non_finite_result_is_zeroed(artsig):
    """An overflowing transit time poisons the convolution; the whole vector is discarded."""
    model = make_model(artsig, infer_mtt=True)
    outcome = model.evaluate(jnp.array([0.05, 1000.0, 100.0]))

    assert bool(outcome.non_finite)
    np.testing.assert_array_equal(outcome.signal, jnp.zeros(40))


def test_overflowing_signal_is_zeroed():
    # A rising arterial signal gives a negative AIF and an exploding exp(-C * te)
    artsig = np.concatenate([[1.0], np.full(19, 100.0)])
    model = make_model(artsig)
    outcome = model.evaluate(jnp.array([1e4, 100.0]))

    assert bool(outcome.non_finite)
    np.testing.assert_array_equal(outcome.signal, jnp.zeros(20))


def test_finite_or_zero_keeps_finite_vectors():
    v = jnp.array([1.0, 2.0, 3.0])
    out, flag = finite_or_zero(v)
    assert not bool(flag)
    np.testing.assert_array_equal(out, v)

    out, flag = finite_or_zero(jnp.array([1.0, jnp.inf, 3.0]))
    assert bool(flag)
    np.testing.assert_array_equal(out, jnp.zeros(3))


def test_g_dsc():
    c = jnp.array([0.0, 10.0])
    np.testing.assert_allclose(g_dsc(c, 50.0, 0.02), [50.0, 50.0 * np.exp(-0.2)])


def test_jit_and_vmap_across_voxels(artsig):
    model = make_model(artsig, infer_mtt=True, infer_lambda=True, infer_delay=True)
    params = jnp.array([
        [0.05, 1.0, 1.0, 0.0, 100.0],
        [0.02, 1.5, 2.0, 1.5, 80.0],
        [0.08, 0.5, 0.5, -1.0, 120.0],
    ])
    batched = jax.jit(jax.vmap(model))(params)

    assert batched.shape == (3, 40)
    for i in range(3):
        np.testing.assert_allclose(batched[i], model(params[i]), rtol=1e-10)


def test_gradient_wrt_cbf(artsig):
    model = make_model(artsig)
    grad = jax.grad(lambda p: jnp.sum(model(p)))(jnp.array([0.05, 100.0]))
    assert jnp.all(jnp.isfinite(grad))
    # More perfusion means more signal loss
    assert grad[0] < 0


def test_invalid_configuration(artsig):
    acq = DSCAcquisitionScheme(len(artsig), 1.0, TE)
    aif = ArterialInputFunction.from_signal(artsig, TE)
    with pytest.raises(ValueError):
        DSCModel(acq, aif, build_layout(), scheme='fft')

    wrong_grid = DSCAcquisitionScheme(len(artsig), 1.0, TE, upsample=2)
    with pytest.raises(ValueError):
        DSCModel(wrong_grid, aif, build_layout())
