from typing import NamedTuple, Optional, Tuple

# Order in which slots appear in the parameter vector.
SLOT_NAMES = ('cbf', 'transitm', 'lambda', 'delay', 'sig0', 'abv', 'artdelay', 'ret')


class ParameterLayout(NamedTuple):
    """
    Positions of each named quantity inside the flat DSC parameter vector.

    Disabled slots hold ``None``. Built once per configuration by
    :func:`build_layout` and consulted for naming, indexing and priors.
    """
    infer_mtt: bool
    infer_lambda: bool
    infer_delay: bool
    infer_art: bool
    infer_ret: bool
    cbf: int
    transitm: Optional[int]
    lambda_: Optional[int]
    delay: Optional[int]
    sig0: int
    abv: Optional[int]
    artdelay: Optional[int]
    ret: Optional[int]
    num_params: int
    names: Tuple[str, ...]
    ard_indices: Tuple[int, ...]

    def index_of(self, name: str) -> int:
        """Position of slot ``name``; raises KeyError if it is not in use."""
        if name not in SLOT_NAMES:
            raise KeyError(f"Unknown parameter '{name}'. Valid names: {SLOT_NAMES}")
        idx = getattr(self, 'lambda_' if name == 'lambda' else name)
        if idx is None:
            raise KeyError(f"Parameter '{name}' is not inferred in this configuration")
        return idx

    def enabled(self, name: str) -> bool:
        try:
            self.index_of(name)
        except KeyError:
            return False
        return True


def build_layout(infer_mtt: bool = False,
                 infer_lambda: bool = False,
                 infer_delay: bool = False,
                 infer_art: bool = False,
                 infer_ret: bool = False) -> ParameterLayout:
    """
    Derive slot offsets and names from the five inference toggles.

    The vector always starts with ``cbf``; ``sig0`` sits after the optional
    delay and before the arterial pair (``abv``, ``artdelay``).
    """
    toggles = {
        'cbf': True,
        'transitm': infer_mtt,
        'lambda': infer_lambda,
        'delay': infer_delay,
        'sig0': True,
        'abv': infer_art,
        'artdelay': infer_art,
        'ret': infer_ret,
    }

    offsets = {}
    names = []
    for name in SLOT_NAMES:
        if toggles[name]:
            offsets[name] = len(names)
            names.append(name)
        else:
            offsets[name] = None

    # Only the arterial blood volume is subject to ARD
    ard_indices = (offsets['abv'],) if infer_art else ()

    return ParameterLayout(
        infer_mtt=bool(infer_mtt),
        infer_lambda=bool(infer_lambda),
        infer_delay=bool(infer_delay),
        infer_art=bool(infer_art),
        infer_ret=bool(infer_ret),
        cbf=offsets['cbf'],
        transitm=offsets['transitm'],
        lambda_=offsets['lambda'],
        delay=offsets['delay'],
        sig0=offsets['sig0'],
        abv=offsets['abv'],
        artdelay=offsets['artdelay'],
        ret=offsets['ret'],
        num_params=len(names),
        names=tuple(names),
        ard_indices=ard_indices,
    )
