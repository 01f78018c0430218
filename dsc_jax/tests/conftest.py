import numpy as np
import pytest
import jax

jax.config.update("jax_enable_x64", True)

TE = 0.03
DELT = 1.0
N_TIMEPOINTS = 40


def bolus_signal(n=N_TIMEPOINTS, delt=DELT, te=TE, s0=100.0, arrival=5.0, peak=20.0):
    """Arterial signal for a gamma-variate bolus: S = s0 * exp(-te * C(t))."""
    t = np.arange(n) * delt
    x = np.clip(t - arrival, 0.0, None)
    conc = peak * (x / 3.0) ** 3 * np.exp(3.0 - x)
    return s0 * np.exp(-te * conc)


@pytest.fixture
def artsig():
    return bolus_signal()


@pytest.fixture
def aif_file(tmp_path, artsig):
    path = tmp_path / "aif.txt"
    np.savetxt(path, artsig)
    return path
