from .distributions import GammaResidue, gamma_cdf, gamma_residue, retention_fraction
from .mvn import MultivariateNormal

__all__ = ["GammaResidue", "gamma_cdf", "gamma_residue", "retention_fraction", "MultivariateNormal"]
