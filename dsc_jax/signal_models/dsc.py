import jax.numpy as jnp
from jax import jit
import equinox as eqx
from typing import Any, NamedTuple

from dsc_jax.core.acquisition import DSCAcquisitionScheme
from dsc_jax.core.layout import ParameterLayout
from dsc_jax.distributions.distributions import GammaResidue, retention_fraction
from dsc_jax.signal_models.aif import ArterialInputFunction
from dsc_jax.signal_models.convolution import (
    CONVOLUTION_SCHEMES, arterial_concentration, concentration
)


class EvaluationResult(NamedTuple):
    """
    Output of one forward evaluation.

    signal: (N,) predicted signal on the observed grid (all zeros if non_finite).
    non_finite: True when the raw prediction held NaN or Inf and was discarded.
    """
    signal: Any
    non_finite: Any


@jit
def g_dsc(concentration_low, sig0, te):
    """
    Maps tracer concentration to the DSC (T2*-weighted) signal.

    S = sig0 * exp(-C * te)
    """
    return sig0 * jnp.exp(-concentration_low * te)


def downsample(curve, upsample):
    """Picks the internal-grid samples that coincide with the observed grid."""
    return curve[::upsample]


@jit
def finite_or_zero(result):
    """
    Replaces the whole vector by zeros if any entry is NaN or Inf.

    Returns:
        (result, non_finite)
    """
    non_finite = ~jnp.all(jnp.isfinite(result))
    return jnp.where(non_finite, jnp.zeros_like(result), result), non_finite


class DSCModel(eqx.Module):
    r"""
    Convolution model of the DSC signal [1]_.

    The tissue concentration is the convolution of the (delayed) arterial
    input with a residue function derived from a Gamma distribution of
    transit times, scaled by cbf. An optional local arterial component adds
    a scaled and separately delayed copy of the arterial input.

    Parameters are read from a flat vector whose slots are given by
    ``layout``. Negative values in cbf, sig0, abv and ret are clamped to
    zero; transitm and lambda are log-domain, delay and artdelay are signed.

    References
    ----------
    .. [1] Mouridsen, Kim, et al. "Bayesian estimation of cerebral perfusion
           using a physiological model of microvasculature."
           NeuroImage 33.2 (2006): 570-579.
    """

    acquisition: DSCAcquisitionScheme
    aif: ArterialInputFunction
    layout: ParameterLayout = eqx.field(static=True)
    scheme: str = eqx.field(static=True)

    def __init__(self, acquisition, aif, layout, scheme='simple'):
        if scheme not in CONVOLUTION_SCHEMES:
            raise ValueError(f"Unknown convolution scheme: {scheme}. Use one of {CONVOLUTION_SCHEMES}.")
        if len(aif) != acquisition.n_internal:
            raise ValueError(
                f"AIF has {len(aif)} internal samples but the acquisition expects {acquisition.n_internal}"
            )
        self.acquisition = acquisition
        self.aif = aif
        self.layout = layout
        self.scheme = scheme

    def _unpack(self, params):
        params = jnp.asarray(params)
        clamped = jnp.maximum(params, 0.0)
        L = self.layout

        values = {
            'cbf': clamped[L.cbf],
            'transitm': params[L.transitm] if L.infer_mtt else 0.0,
            'lambda': params[L.lambda_] if L.infer_lambda else 0.0,
            'delay': params[L.delay] if L.infer_delay else 0.0,
            'sig0': clamped[L.sig0],
            'ret': retention_fraction(clamped[L.ret]) if L.infer_ret else 0.0,
        }
        if L.infer_art:
            values['abv'] = clamped[L.abv]
            values['artdelay'] = params[L.artdelay]

        max_delay = self.acquisition.max_delay
        values['delay'] = jnp.clip(values['delay'], -max_delay, max_delay)
        return values

    def residue(self, params):
        """Residue function on the internal grid."""
        v = self._unpack(params)
        return GammaResidue(v['transitm'], v['lambda'], v['ret'])(self.acquisition.htsamp)

    def concentration(self, params):
        """Tissue concentration on the internal grid, before the arterial term."""
        v = self._unpack(params)
        hdelt = self.acquisition.hdelt
        aif_tissue = self.aif.shifted(v['delay'], hdelt)
        residue = GammaResidue(v['transitm'], v['lambda'], v['ret'])(self.acquisition.htsamp)
        return concentration(aif_tissue, residue, v['cbf'], hdelt, scheme=self.scheme)

    def evaluate(self, params) -> EvaluationResult:
        v = self._unpack(params)
        acq = self.acquisition

        c_low = downsample(self.concentration(params), acq.upsample)
        if self.layout.infer_art:
            c_art = arterial_concentration(self.aif.aif, v['abv'], v['artdelay'], acq.hdelt)
            c_low = c_low + downsample(c_art, acq.upsample)

        result = g_dsc(c_low, v['sig0'], acq.te)
        result, non_finite = finite_or_zero(result)
        return EvaluationResult(result, non_finite)

    def __call__(self, params):
        return self.evaluate(params).signal
