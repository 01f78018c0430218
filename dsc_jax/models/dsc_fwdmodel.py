import logging
import equinox as eqx
import jax.numpy as jnp
import numpy as np
from typing import Any, List, Mapping, Tuple

from dsc_jax import __version__
from dsc_jax.bayesian.ard import setup_ard, update_ard
from dsc_jax.config import DSCConfig
from dsc_jax.constants import (
    BASE_PRECISION, IMAGE_PRIOR_PRECISIONS, POSTERIOR_OVERRIDES, PRIOR_MEANS_PRECISIONS
)
from dsc_jax.core.acquisition import DSCAcquisitionScheme
from dsc_jax.core.layout import build_layout
from dsc_jax.distributions.mvn import MultivariateNormal
from dsc_jax.signal_models.aif import ArterialInputFunction, load_arterial_signal
from dsc_jax.signal_models.dsc import DSCModel, EvaluationResult

logger = logging.getLogger(__name__)

USAGE = """DSC convolution model (Gamma residue function)

Required options:
  --te=<echo time>          Echo time (s)
  --delt=<sampling time>    Time between volumes (s)
  --aif=<file>              ASCII column vector with the arterial signal

Model options:
  --infermtt                Infer the (log) mean transit time
  --inferlambda             Infer the (log) transit time dispersion
  --inferdelay              Infer the bolus arrival delay
  --inferart                Infer a local arterial component (ARD on its magnitude)
  --inferret                Infer tracer retention
  --convmtx=simple|voltera  Convolution matrix (default: simple)
  --imageprior              Tighter priors on cbf and transitm
  --upsample=<n>            Refinement of the internal time grid (default: 1)
"""


@eqx.filter_jit
def _evaluate(model: DSCModel, params) -> EvaluationResult:
    return model.evaluate(params)


class DSCFwdModel:
    """
    Forward model interface for DSC perfusion analysis.

    Wraps :class:`~dsc_jax.signal_models.dsc.DSCModel` with the operations an
    external variational Bayes engine needs: parameter naming, hard-coded
    initial distributions, evaluation and ARD.

    Args:
        config: Model configuration.
        artsig: Optional raw arterial signal. When omitted it is read from ``config.aif``.
    """

    def __init__(self, config: DSCConfig, artsig=None):
        config = config.validate()
        if artsig is None:
            if config.aif is None:
                raise ValueError("No arterial signal given: set the 'aif' option")
            artsig = load_arterial_signal(config.aif)
        artsig = np.asarray(artsig, dtype=float).ravel()
        if artsig.size == 0 or not artsig[0] > 0:
            raise ValueError("Arterial signal must be non-empty with a positive first sample")

        self.config = config
        self.layout = build_layout(
            infer_mtt=config.infer_mtt,
            infer_lambda=config.infer_lambda,
            infer_delay=config.infer_delay,
            infer_art=config.infer_art,
            infer_ret=config.infer_ret,
        )
        self.acquisition = DSCAcquisitionScheme(
            artsig.size, config.delt, config.te, upsample=config.upsample
        )
        self.aif = ArterialInputFunction.from_signal(artsig, config.te, upsample=config.upsample)
        self.model = DSCModel(self.acquisition, self.aif, self.layout, scheme=config.convmtx)

        logger.info(
            f"DSC model: {self.acquisition.n_timepoints} time points, delt={config.delt}, "
            f"te={config.te}, convmtx={config.convmtx}, parameters={list(self.layout.names)}"
        )

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> 'DSCFwdModel':
        return cls(DSCConfig.from_args(args))

    @classmethod
    def from_arrays(cls, artsig, config: DSCConfig) -> 'DSCFwdModel':
        return cls(config, artsig=artsig)

    @property
    def do_ard(self) -> bool:
        return len(self.layout.ard_indices) > 0

    def num_params(self) -> int:
        return self.layout.num_params

    def name_params(self) -> List[str]:
        return list(self.layout.names)

    def _check_params(self, params):
        params = jnp.asarray(params, dtype=float)
        if params.shape != (self.num_params(),):
            raise ValueError(
                f"Expected {self.num_params()} parameters {self.name_params()}, got shape {params.shape}"
            )
        return params

    def evaluate_with_diagnostics(self, params) -> EvaluationResult:
        return _evaluate(self.model, self._check_params(params))

    def evaluate(self, params):
        """
        Predicted signal on the measured time grid.

        A prediction containing NaN or Inf is replaced by zeros and reported
        in the log.
        """
        outcome = self.evaluate_with_diagnostics(params)
        if bool(outcome.non_finite):
            logger.warning(f"NaN or inf in result, returning zeros. params: {np.asarray(params)}")
        return outcome.signal

    def hardcoded_initial_dists(self) -> Tuple[MultivariateNormal, MultivariateNormal]:
        """
        Initial prior and posterior over the parameter vector.

        Returns:
            (prior, posterior)
        """
        n = self.num_params()
        means = np.zeros(n)
        precisions = np.eye(n) * BASE_PRECISION

        for name in self.layout.names:
            idx = self.layout.index_of(name)
            mean, precision = PRIOR_MEANS_PRECISIONS[name]
            if self.config.image_prior and name in IMAGE_PRIOR_PRECISIONS:
                precision = IMAGE_PRIOR_PRECISIONS[name]
            means[idx] = mean
            precisions[idx, idx] = precision

        prior = MultivariateNormal(means.copy(), precisions=precisions.copy())

        # Slots with an uninformative prior start from a more sensible posterior
        for name, (mean, precision) in POSTERIOR_OVERRIDES.items():
            if self.layout.enabled(name):
                idx = self.layout.index_of(name)
                means[idx] = mean
                precisions[idx, idx] = precision

        posterior = MultivariateNormal(means, precisions=precisions)
        return prior, posterior

    def setup_ard(self, posterior: MultivariateNormal, prior: MultivariateNormal) -> float:
        """Flattens the ARD priors in place; returns the free energy contribution."""
        return setup_ard(posterior, prior, self.layout.ard_indices)

    def update_ard(self, posterior: MultivariateNormal, prior: MultivariateNormal) -> float:
        """One ARD update of the prior in place; returns the free energy contribution."""
        return update_ard(posterior, prior, self.layout.ard_indices)

    def dump_parameters(self, params, indent: str = "") -> str:
        params = np.asarray(params, dtype=float)
        return "\n".join(
            f"{indent}{name}: {value:.6g}" for name, value in zip(self.layout.names, params)
        )

    @staticmethod
    def model_usage() -> str:
        return USAGE

    def model_version(self) -> str:
        return f"dsc-jax {__version__}"
