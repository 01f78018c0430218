import argparse
import logging
import sys
import numpy as np
from pathlib import Path

from dsc_jax.config import DSCConfig
from dsc_jax.models.dsc_fwdmodel import DSCFwdModel


def setup_logging():
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s: %(message)s'
    )
    return logging.getLogger("dsc-simulate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Predict the DSC signal of one voxel from its perfusion parameters."
    )
    parser.add_argument("--aif", type=str, help="ASCII column vector holding the arterial signal.")
    parser.add_argument("--te", type=float, help="Echo time (s).")
    parser.add_argument("--delt", type=float, help="Time between volumes (s).")
    parser.add_argument("--infermtt", action="store_true", help="Include the (log) mean transit time.")
    parser.add_argument("--inferlambda", action="store_true", help="Include the (log) transit dispersion.")
    parser.add_argument("--inferdelay", action="store_true", help="Include the bolus delay.")
    parser.add_argument("--inferart", action="store_true", help="Include the arterial component.")
    parser.add_argument("--inferret", action="store_true", help="Include tracer retention.")
    parser.add_argument("--convmtx", type=str, default="simple", help="Convolution matrix: simple or voltera.")
    parser.add_argument("--imageprior", action="store_true", help="Use the tighter image priors.")
    parser.add_argument("--upsample", type=int, default=1, help="Refinement of the internal time grid.")
    parser.add_argument("--params", type=float, nargs="+",
                        help="Parameter vector in model order (default: initial distribution means).")
    parser.add_argument("--output", "-o", type=str, help="Optional text file for the predicted signal.")
    parser.add_argument("--usage", action="store_true", help="Print the model usage and exit.")
    return parser


def config_from_namespace(args: argparse.Namespace) -> DSCConfig:
    options = {
        'te': args.te,
        'delt': args.delt,
        'aif': args.aif,
        'infermtt': args.infermtt,
        'inferlambda': args.inferlambda,
        'inferdelay': args.inferdelay,
        'inferart': args.inferart,
        'inferret': args.inferret,
        'convmtx': args.convmtx,
        'imageprior': args.imageprior,
        'upsample': args.upsample,
    }
    return DSCConfig.from_args(options)


def default_params(model: DSCFwdModel) -> np.ndarray:
    """Prior means, with cbf taken from the initial posterior."""
    prior, posterior = model.hardcoded_initial_dists()
    params = np.array(prior.means)
    cbf = model.layout.cbf
    params[cbf] = float(posterior.means[cbf])
    return params


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.usage:
        print(DSCFwdModel.model_usage())
        return 0

    logger = setup_logging()
    try:
        model = DSCFwdModel(config_from_namespace(args))
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Could not build the DSC model: {e}")
        return 1

    if args.params is None:
        params = default_params(model)
    else:
        params = np.asarray(args.params, dtype=float)
    if params.size != model.num_params():
        logger.error(f"Expected {model.num_params()} parameters {model.name_params()}, got {params.size}")
        return 1

    logger.info(model.model_version())
    print("Parameters:")
    print(model.dump_parameters(params, indent="  "))

    signal = np.asarray(model.evaluate(params))
    print("Signal:")
    print(" ".join(f"{s:.6g}" for s in signal))

    if args.output:
        np.savetxt(Path(args.output), signal)
        logger.info(f"Signal saved to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
