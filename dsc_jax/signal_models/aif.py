import os
import jax.numpy as jnp
import numpy as np
import equinox as eqx
from jax import jit
from jaxtyping import Array, Float
from typing import Any


def load_arterial_signal(path) -> np.ndarray:
    """
    Reads a raw arterial signal stored as an ASCII column vector.

    Args:
        path: Text file with one sample per row.

    Returns:
        (N,) float array of signal samples.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"AIF file not found: {path}")

    artsig = np.loadtxt(path, ndmin=2)
    if artsig.size == 0:
        raise ValueError(f"AIF file {path} is empty")
    if artsig.shape[1] != 1:
        # A single row is accepted as a transposed column
        if artsig.shape[0] == 1:
            artsig = artsig.T
        else:
            raise ValueError(f"AIF file {path} must hold a single column, got shape {artsig.shape}")

    artsig = artsig[:, 0]
    if not artsig[0] > 0:
        raise ValueError(f"AIF baseline (first sample) must be positive, got {artsig[0]}")
    return artsig


def aif_from_signal(artsig, te):
    """
    Converts a raw arterial signal into a concentration-like curve.

    aif[i] = -ln(artsig[i] / artsig[0]) / te

    The first sample is taken as the pre-contrast baseline, so aif[0] = 0.
    """
    artsig = jnp.asarray(artsig)
    return -jnp.log(artsig / artsig[0]) / te


def upsample_aif(aif_low, upsample):
    """Piecewise-linear interpolation of ``aif_low`` onto a grid ``upsample`` times finer."""
    aif_low = jnp.asarray(aif_low)
    if upsample == 1:
        return aif_low
    n_low = aif_low.shape[0]
    n_high = (n_low - 1) * upsample + 1
    x_high = jnp.arange(n_high) / upsample
    return jnp.interp(x_high, jnp.arange(n_low), aif_low)


@jit
def shift_aif(curve: Float[Array, "M"], delta, hdelt) -> Float[Array, "M"]:
    """
    Shifts a curve forward in time by ``delta`` using linear interpolation.

    The shift is split into a whole number of samples ``nshift`` and a
    forward remainder ``minorshift`` in [0, hdelt). Before the start the
    curve is taken as zero and past the end it holds its final value.

    The sample that lands on the first grid point is ``curve[0] * minorshift / hdelt``,
    so a zero shift maps position 0 to 0 and leaves every other sample intact.
    """
    n = curve.shape[0]
    nshift = jnp.floor(delta / hdelt)
    frac = (delta - nshift * hdelt) / hdelt

    # Any shift past either end saturates; bound it before the integer cast
    whole = jnp.clip(nshift, -(n + 1), n + 1).astype(jnp.int32)
    index = jnp.arange(n) - whole
    safe = jnp.clip(index, 1, n - 1)
    interp = curve[safe] + (curve[safe - 1] - curve[safe]) * frac

    shifted = jnp.where(index > n - 1, curve[n - 1], interp)
    shifted = jnp.where(index < 0, 0.0, shifted)
    shifted = jnp.where(index == 0, curve[0] * frac, shifted)
    return shifted


class ArterialInputFunction(eqx.Module):
    """
    Arterial input function on both the observed and the internal grid.

    Built once from the measured arterial signal and not changed afterwards.

    Parameters
    ----------
    aif_low : array
        Baseline-relative log signal on the observed grid.
    aif : array
        ``aif_low`` linearly upsampled onto the internal grid.
    """
    aif_low: Any
    aif: Any

    def __init__(self, aif_low, upsample=1):
        self.aif_low = jnp.asarray(aif_low)
        self.aif = upsample_aif(self.aif_low, upsample)

    @classmethod
    def from_signal(cls, artsig, te, upsample=1):
        return cls(aif_from_signal(artsig, te), upsample=upsample)

    def shifted(self, delta, hdelt):
        return shift_aif(self.aif, delta, hdelt)

    def __len__(self):
        return self.aif.shape[0]
