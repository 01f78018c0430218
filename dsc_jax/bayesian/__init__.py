from .ard import ard_free_energy, setup_ard, update_ard, ARD_FLAT_PRECISION

__all__ = ["ard_free_energy", "setup_ard", "update_ard", "ARD_FLAT_PRECISION"]
