from .layout import ParameterLayout, build_layout, SLOT_NAMES
from .acquisition import DSCAcquisitionScheme

__all__ = ["ParameterLayout", "build_layout", "SLOT_NAMES", "DSCAcquisitionScheme"]
