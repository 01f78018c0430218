# Initial prior (mean, precision) for each slot of the DSC parameter vector.
# cbf and abv start effectively flat; sig0 is only weakly constrained.
PRIOR_MEANS_PRECISIONS = {
    'cbf': (0.0, 1e-12),
    'transitm': (1.5, 10.0),
    'lambda': (2.0, 1.0),
    'delay': (0.0, 1.0),
    'sig0': (100.0, 1e-6),
    'abv': (0.0, 1e-12),
    'artdelay': (0.0, 0.04),
    'ret': (0.0, 1e4),
}

# Tighter prior precisions used when a spatial (image) prior is available
IMAGE_PRIOR_PRECISIONS = {
    'cbf': 100.0,
    'transitm': 100.0,
}

# Precision on the diagonal for every slot before the per-slot values are set
BASE_PRECISION = 1e-12

# Initial posterior overrides (mean, precision) for slots with a flat prior
POSTERIOR_OVERRIDES = {
    'cbf': (0.1, 10.0),
    'abv': (0.0, 10.0),
}
