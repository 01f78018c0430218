import logging
from typing import Any, Mapping, NamedTuple, Optional

from dsc_jax.signal_models.convolution import CONVOLUTION_SCHEMES

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {'1', 'true', 'yes', 'on', ''}
_FALSE_STRINGS = {'0', 'false', 'no', 'off'}


def _read_bool(args: Mapping[str, Any], key: str) -> bool:
    # Presence-only flags arrive as None or '' and count as set
    if key not in args:
        return False
    value = args[key]
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Option '{key}' expects a boolean, got '{value}'")


def _read_required(args: Mapping[str, Any], key: str) -> Any:
    if key not in args or args[key] is None:
        raise ValueError(f"Missing required option '{key}' for the DSC model")
    return args[key]


def _read_float(args: Mapping[str, Any], key: str) -> float:
    value = _read_required(args, key)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Option '{key}' expects a number, got '{value}'") from None


def _read_int(args: Mapping[str, Any], key: str, default: int) -> int:
    value = args.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Option '{key}' expects an integer, got '{value}'") from None


class DSCConfig(NamedTuple):
    """
    Construction-time settings of the DSC forward model.

    Attributes:
        te: Echo time (s).
        delt: Sampling interval of the measured time series (s).
        aif: Path to the ASCII column vector holding the arterial signal.
        infer_mtt: Infer the (log) mean transit time.
        infer_lambda: Infer the (log) transit time dispersion.
        infer_delay: Infer the bolus arrival delay.
        infer_art: Infer a local arterial component (magnitude and delay).
        infer_ret: Infer the tracer retention fraction.
        convmtx: Convolution scheme, 'simple' or 'voltera'.
        image_prior: Tighten the cbf/transitm priors (spatial prior available).
        upsample: Refinement factor of the internal convolution grid.
        scan_params: Source of the scan parameters; only 'cmdline' is supported.
    """
    te: float
    delt: float
    aif: Optional[str] = None
    infer_mtt: bool = False
    infer_lambda: bool = False
    infer_delay: bool = False
    infer_art: bool = False
    infer_ret: bool = False
    convmtx: str = 'simple'
    image_prior: bool = False
    upsample: int = 1
    scan_params: str = 'cmdline'

    def validate(self) -> 'DSCConfig':
        if self.scan_params != 'cmdline':
            raise ValueError("Only --scan-params=cmdline is accepted at the moment")
        if self.convmtx not in CONVOLUTION_SCHEMES:
            raise ValueError(f"Unknown convolution scheme: {self.convmtx}. Use one of {CONVOLUTION_SCHEMES}.")
        if self.te <= 0:
            raise ValueError(f"te must be positive, got {self.te}")
        if self.delt <= 0:
            raise ValueError(f"delt must be positive, got {self.delt}")
        if int(self.upsample) < 1:
            raise ValueError(f"upsample must be >= 1, got {self.upsample}")
        return self

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> 'DSCConfig':
        """
        Resolves the model options from a mapping of option names.

        Keys follow the command line options of the model: ``scan-params``,
        ``te``, ``delt``, ``aif``, ``infermtt``, ``inferlambda``,
        ``inferdelay``, ``inferart``, ``inferret``, ``convmtx``,
        ``imageprior`` and ``upsample``.
        """
        scan_params = str(args.get('scan-params', 'cmdline'))
        if scan_params != 'cmdline':
            raise ValueError("Only --scan-params=cmdline is accepted at the moment")

        config = cls(
            te=_read_float(args, 'te'),
            delt=_read_float(args, 'delt'),
            aif=str(_read_required(args, 'aif')),
            infer_mtt=_read_bool(args, 'infermtt'),
            infer_lambda=_read_bool(args, 'inferlambda'),
            infer_delay=_read_bool(args, 'inferdelay'),
            infer_art=_read_bool(args, 'inferart'),
            infer_ret=_read_bool(args, 'inferret'),
            convmtx=str(args.get('convmtx') or 'simple'),
            image_prior=_read_bool(args, 'imageprior'),
            upsample=_read_int(args, 'upsample', 1),
            scan_params=scan_params,
        )
        config.validate()
        logger.debug(f"Resolved DSC configuration: {config}")
        return config
