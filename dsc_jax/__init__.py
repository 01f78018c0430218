"""
dsc-jax: A JAX implementation of the convolution model for dynamic susceptibility contrast (DSC) MRI.

The forward model predicts the DSC signal of a voxel from its perfusion
parameters and is meant to be evaluated repeatedly by an external Bayesian
(variational) inference engine. It is written with JAX so it can be
compiled, vectorized across voxels and differentiated.

Submodules
----------
- `core`: Parameter layout and acquisition time grids.
- `signal_models`: Arterial input function, convolution and the DSC signal model.
- `distributions`: Gamma residue function and multivariate normal distributions.
- `bayesian`: Automatic relevance determination (ARD) prior updates.
- `models`: The `DSCFwdModel` interface consumed by the inference engine.
- `config`: Construction-time options.
"""

__version__ = "0.1.0"

from dsc_jax import core
from dsc_jax import signal_models
from dsc_jax import distributions
from dsc_jax import bayesian
from dsc_jax import models
from dsc_jax import config

__all__ = [
    'core',
    'signal_models',
    'distributions',
    'bayesian',
    'models',
    'config',
]
