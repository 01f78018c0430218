import jax.numpy as jnp

__all__ = ['MultivariateNormal']


class MultivariateNormal:
    """
    Multivariate normal distribution over the flat parameter vector.

    Holds the mean and either the precision or the covariance matrix; the
    other one is obtained by inversion when first requested. Instances are
    owned by the caller (an optimiser) and may be updated in place through
    ``set_precisions`` / ``set_covariance``.

    Args:
        means: (P,) mean vector.
        precisions: (P, P) precision matrix.
        covariance: (P, P) covariance matrix. Give exactly one of the two.
    """

    def __init__(self, means, precisions=None, covariance=None):
        self.means = jnp.asarray(means, dtype=float)
        if self.means.ndim != 1:
            raise ValueError(f"means must be a vector, got shape {self.means.shape}")
        self._precisions = None
        self._covariance = None

        if precisions is not None and covariance is not None:
            raise ValueError("Give either precisions or covariance, not both")
        if covariance is not None:
            self.set_covariance(covariance)
        elif precisions is not None:
            self.set_precisions(precisions)
        else:
            self.set_precisions(jnp.eye(self.num_params))

    @property
    def num_params(self):
        return self.means.shape[0]

    def _check_square(self, mat):
        mat = jnp.asarray(mat, dtype=float)
        if mat.shape != (self.num_params, self.num_params):
            raise ValueError(
                f"Expected a ({self.num_params}, {self.num_params}) matrix, got {mat.shape}"
            )
        return mat

    def set_means(self, means):
        means = jnp.asarray(means, dtype=float)
        if means.shape != self.means.shape:
            raise ValueError(f"Expected means of shape {self.means.shape}, got {means.shape}")
        self.means = means

    def get_precisions(self):
        if self._precisions is None:
            self._precisions = jnp.linalg.inv(self._covariance)
        return self._precisions

    def set_precisions(self, precisions):
        self._precisions = self._check_square(precisions)
        self._covariance = None

    def get_covariance(self):
        if self._covariance is None:
            self._covariance = jnp.linalg.inv(self._precisions)
        return self._covariance

    def set_covariance(self, covariance):
        self._covariance = self._check_square(covariance)
        self._precisions = None

    def variances(self):
        """Marginal variances (diagonal of the covariance)."""
        return jnp.diag(self.get_covariance())

    def copy(self) -> 'MultivariateNormal':
        new = MultivariateNormal.__new__(MultivariateNormal)
        new.means = self.means
        new._precisions = self._precisions
        new._covariance = self._covariance
        return new

    def __repr__(self):
        return f"MultivariateNormal(num_params={self.num_params}, means={self.means})"
