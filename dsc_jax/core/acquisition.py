import jax.numpy as jnp
import numpy as np
from typing import Any
import equinox as eqx


class DSCAcquisitionScheme(eqx.Module):
    """
    Sampling grids of a DSC acquisition.

    The observed grid has ``n_timepoints`` samples spaced ``delt`` apart.
    Convolution runs on an internal grid refined by ``upsample``:
    ``(n_timepoints - 1) * upsample + 1`` samples spaced ``delt / upsample``.
    Both grids start and end at the same times.
    """
    tsamp: Any
    htsamp: Any
    te: float = eqx.field(static=True)
    delt: float = eqx.field(static=True)
    hdelt: float = eqx.field(static=True)
    n_timepoints: int = eqx.field(static=True)
    upsample: int = eqx.field(static=True)

    def __init__(self, n_timepoints, delt, te, upsample=1):
        if int(n_timepoints) < 1:
            raise ValueError(f"n_timepoints must be positive, got {n_timepoints}")
        if int(upsample) < 1:
            raise ValueError(f"upsample must be >= 1, got {upsample}")
        if delt <= 0:
            raise ValueError(f"delt must be positive, got {delt}")
        if te <= 0:
            raise ValueError(f"te must be positive, got {te}")

        self.n_timepoints = int(n_timepoints)
        self.upsample = int(upsample)
        self.te = float(te)
        self.delt = float(delt)
        self.hdelt = self.delt / self.upsample

        tsamp = np.arange(self.n_timepoints) * self.delt
        n_internal = (self.n_timepoints - 1) * self.upsample + 1
        htsamp = np.arange(n_internal) * self.hdelt
        # Pin the end point so both grids finish together
        htsamp[-1] = tsamp[-1]

        self.tsamp = jnp.asarray(tsamp)
        self.htsamp = jnp.asarray(htsamp)

    @property
    def n_internal(self):
        return (self.n_timepoints - 1) * self.upsample + 1

    @property
    def max_delay(self):
        """Largest delay magnitude worth estimating: half the observed window."""
        return (self.n_timepoints // 2) * self.delt
