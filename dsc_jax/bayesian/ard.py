import jax.numpy as jnp
from jax.scipy.special import digamma, gammaln
from typing import Sequence

from dsc_jax.distributions.mvn import MultivariateNormal

# Prior precision that makes an ARD parameter initially non-informative
ARD_FLAT_PRECISION = 1e-12


def ard_free_energy(mean, variance):
    """
    Free energy contribution of one ARD parameter.

    With b = 2 / (mean^2 + variance) and the Gamma hyperprior shape fixed
    at c = 0.5:

        F = -1.5 * (ln b + psi(0.5)) - 0.5 - ln Gamma(0.5) - 0.5 * ln b

    Args:
        mean: Posterior mean of the parameter.
        variance: Posterior variance of the parameter.
    """
    b = 2.0 / (mean * mean + variance)
    log_b = jnp.log(b)
    return -1.5 * (log_b + digamma(0.5)) - 0.5 - gammaln(0.5) - 0.5 * log_b


def setup_ard(posterior: MultivariateNormal,
              prior: MultivariateNormal,
              ard_indices: Sequence[int]) -> float:
    """
    Prepares the prior for ARD before estimation starts.

    For every ARD index the prior is made flat (precision ~ 0) with zero
    mean. ``prior`` is modified in place.

    Returns:
        Free energy contribution of the ARD terms, evaluated at the posterior.
    """
    if len(ard_indices) == 0:
        return 0.0

    precisions = prior.get_precisions()
    means = prior.means
    cov = posterior.get_covariance()

    delta_f = 0.0
    for idx in ard_indices:
        precisions = precisions.at[idx, idx].set(ARD_FLAT_PRECISION)
        means = means.at[idx].set(0.0)
        delta_f += float(ard_free_energy(posterior.means[idx], cov[idx, idx]))

    prior.set_precisions(precisions)
    prior.set_means(means)
    return delta_f


def update_ard(posterior: MultivariateNormal,
               prior: MultivariateNormal,
               ard_indices: Sequence[int]) -> float:
    """
    One ARD iteration: sets the prior variance of each ARD parameter to the
    posterior second moment, mean^2 + variance. ``prior`` is modified in place.

    Returns:
        Free energy contribution of the ARD terms.
    """
    if len(ard_indices) == 0:
        return 0.0

    prior_cov = prior.get_covariance()
    post_cov = posterior.get_covariance()

    delta_f = 0.0
    for idx in ard_indices:
        mean = posterior.means[idx]
        prior_cov = prior_cov.at[idx, idx].set(mean * mean + post_cov[idx, idx])
        delta_f += float(ard_free_energy(mean, post_cov[idx, idx]))

    prior.set_covariance(prior_cov)
    return delta_f
