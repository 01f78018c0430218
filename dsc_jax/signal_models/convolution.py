import jax.numpy as jnp
from functools import partial
from jax import jit

from dsc_jax.signal_models.aif import shift_aif

CONVOLUTION_SCHEMES = ('simple', 'voltera')


def _simple_matrix(aif):
    # Rectangular quadrature: A[i, j] = aif[i - j]
    n = aif.shape[0]
    i = jnp.arange(n)[:, None]
    j = jnp.arange(n)[None, :]
    lag = i - j
    return jnp.where(lag >= 0, aif[jnp.clip(lag, 0, n - 1)], 0.0)


def _voltera_matrix(aif):
    """
    Volterra convolution matrix of Sourbron et al. (2007).

    The AIF is taken as zero one sample before the window and one sample
    after it.
    """
    n = aif.shape[0]
    ext = jnp.concatenate([jnp.zeros(1, aif.dtype), aif, jnp.zeros(1, aif.dtype)])

    i = jnp.arange(n)[:, None]
    j = jnp.arange(n)[None, :]
    lag = i - j

    first_col = (2 * ext[jnp.clip(i + 1, 0, n + 1)] + ext[i]) / 6
    diag = (2 * ext[1] + ext[2]) / 6
    k = jnp.clip(lag, 1, n)
    interior = (4 * ext[k] + ext[k - 1] + ext[k + 1]) / 6

    A = jnp.where(j == i, diag, interior)
    # The first column wins over the diagonal at (0, 0)
    A = jnp.where(j == 0, jnp.broadcast_to(first_col, (n, n)), A)
    return jnp.where(lag >= 0, A, 0.0)


def convolution_matrix(aif, scheme='simple'):
    """
    Lower-triangular matrix A such that ``A @ r`` convolves ``aif`` with ``r``.

    Args:
        aif: (M,) arterial input on the internal grid (already time shifted).
        scheme: 'simple' (rectangular) or 'voltera' (three point weights).
    """
    if scheme == 'simple':
        return _simple_matrix(aif)
    elif scheme == 'voltera':
        return _voltera_matrix(aif)
    raise ValueError(f"Unknown convolution scheme: {scheme}. Use one of {CONVOLUTION_SCHEMES}.")


@partial(jit, static_argnames=('scheme',))
def concentration(aif, residue, cbf, hdelt, scheme='simple'):
    """
    Tissue concentration C = cbf * hdelt * A(aif) @ residue.
    """
    A = convolution_matrix(aif, scheme)
    return cbf * hdelt * (A @ residue)


@jit
def arterial_concentration(aif, artmag, artdelay, hdelt):
    """Local arterial contribution: the AIF scaled by ``artmag`` and shifted by ``artdelay``."""
    return artmag * shift_aif(aif, artdelay, hdelt)
