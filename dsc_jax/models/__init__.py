from .dsc_fwdmodel import DSCFwdModel

__all__ = ["DSCFwdModel"]
