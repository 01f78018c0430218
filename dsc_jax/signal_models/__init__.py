from .aif import ArterialInputFunction, aif_from_signal, upsample_aif, shift_aif, load_arterial_signal
from .convolution import convolution_matrix, concentration, arterial_concentration, CONVOLUTION_SCHEMES
from .dsc import DSCModel, EvaluationResult, g_dsc, downsample, finite_or_zero

__all__ = ["ArterialInputFunction", "aif_from_signal", "upsample_aif", "shift_aif", "load_arterial_signal",
           "convolution_matrix", "concentration", "arterial_concentration", "CONVOLUTION_SCHEMES",
           "DSCModel", "EvaluationResult", "g_dsc", "downsample", "finite_or_zero"]
