import jax.numpy as jnp
from jax.scipy import special
from jax import jit

__all__ = ['GammaResidue', 'gamma_cdf', 'gamma_residue', 'retention_fraction']

# Upper limit on the (exponentiated) transit dispersion
MAX_LAMBDA = 10.0
# Below this variance the transit time distribution is treated as degenerate
MIN_GAMMA_VARIANCE = 1e-5


@jit
def gamma_cdf(t, mean, var):
    """
    CDF of a Gamma distribution parameterised by its mean and variance.

    shape = mean^2 / var, rate = mean / var.
    Zero for t <= 0, and zero everywhere when mean <= 0 or var is
    negligibly small.
    """
    valid = (mean > 0) & (var > MIN_GAMMA_VARIANCE)
    safe_mean = jnp.where(valid, mean, 1.0)
    safe_var = jnp.where(valid, var, 1.0)

    shape = safe_mean ** 2 / safe_var
    rate = safe_mean / safe_var
    # jax.scipy.special.gammainc is the regularised lower incomplete gamma,
    # so gammainc(shape, rate * t) is the Gamma CDF at t.
    cdf = special.gammainc(shape, rate * jnp.maximum(t, 0.0))
    return jnp.where(valid & (t > 0), cdf, 0.0)


def retention_fraction(raw):
    """Squashes an unconstrained retention parameter into [0, 1) with tanh."""
    return jnp.tanh(raw)


@jit
def gamma_residue(t, log_mtt, log_lambda, retention=0.0):
    """
    Residue function for a Gamma distribution of transit times.

    R(t) = (1 - ret) * (1 - GammaCDF(t - t[0])) + ret

    Args:
        t: (M,) sample times.
        log_mtt: log of the mean transit time.
        log_lambda: log of the dispersion (mtt^2 / variance), capped at 10 after exponentiation.
        retention: fraction of tracer that is never washed out.
    """
    mtt = jnp.exp(log_mtt)
    lam = jnp.minimum(jnp.exp(log_lambda), MAX_LAMBDA)
    var = mtt * mtt / lam

    residue = 1.0 - gamma_cdf(t - t[0], mtt, var)
    return (1.0 - retention) * residue + retention


class GammaResidue:
    r"""A residue function derived from a Gamma distribution of transit times.

    The mean transit time and the dispersion are both given in the log
    domain so that any real value maps to a valid distribution.

    Parameters
    ----------
    transitm : float,
        log of the mean transit time.
    lambda_ : float,
        log of the dispersion of the transit time distribution.
    retention : float,
        fraction of tracer retained in the tissue, in [0, 1].
    """

    parameter_names = ['transitm', 'lambda']
    parameter_cardinality = {'transitm': 1, 'lambda': 1}
    parameter_ranges = {
        'transitm': (-5., 5.),
        'lambda': (-5., 2.302585)  # log(MAX_LAMBDA)
    }

    def __init__(self, transitm=0.0, lambda_=0.0, retention=0.0):
        self.transitm = transitm
        self.lambda_ = lambda_
        self.retention = retention

    def __call__(self, t, **kwargs):
        """
        Returns the residue function sampled at times ``t``.

        Keyword arguments override the values given at construction.
        """
        transitm = kwargs.get('transitm', self.transitm)
        lambda_ = kwargs.get('lambda', self.lambda_)
        retention = kwargs.get('retention', self.retention)
        return gamma_residue(jnp.asarray(t), transitm, lambda_, retention)
