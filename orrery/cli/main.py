"""
Command-line front-end for the Orrery propagation engine.

Subcommands:
    simulate: Runs a headless tick loop over a body catalog
    path: Exports the sampled orbit path of one body
    solve: Solves Kepler's equation for a single (M, e) pair
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np
import pandas as pd

from ..config import (
    AVAILABLE_RATE_UNITS, CLI_COORDINATE_PRECISION, CLI_DISPLAY_LINE_WIDTH, CLI_HEADER_CHAR,
    DEFAULT_AU_SCALE, DEFAULT_LOG_FORMAT, DEFAULT_LOG_LEVEL, DEFAULT_OBSERVER_POSITION,
    DEFAULT_RATE_UNIT, DEFAULT_SIMULATION_TICKS, DEFAULT_SPEED_FACTOR, DEFAULT_TICK_SECONDS,
    ORBIT_PATH_SEGMENTS
)
from ..data.catalog import load_catalog
from ..exceptions import CatalogError, ConfigurationError, ConvergenceError
from ..physics.kepler import classify_regime, kepler_residual, solve_kepler
from ..physics.orbit_path import sample_orbit_path
from ..simulation.engine import OrrerySimulation

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def _add_catalog_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('catalog',
                        help='CSV catalog of body definitions')
    parser.add_argument('--rate-unit', choices=AVAILABLE_RATE_UNITS, default=DEFAULT_RATE_UNIT,
                        help=f'Unit of the secular rate columns (default: {DEFAULT_RATE_UNIT})')
    parser.add_argument('--au-scale', type=float, default=DEFAULT_AU_SCALE,
                        help=f'World units per AU (default: {DEFAULT_AU_SCALE})')
    parser.add_argument('--output', '-o',
                        help='Save results to a CSV file')


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser with proper defaults from config."""
    parser = argparse.ArgumentParser(
        description='Orrery Keplerian propagation engine',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    simulate = subparsers.add_parser('simulate', help='Run a headless tick loop over a catalog')
    _add_catalog_arguments(simulate)
    simulate.add_argument('--ticks', '-n', type=int, default=DEFAULT_SIMULATION_TICKS,
                          help=f'Number of ticks to run (default: {DEFAULT_SIMULATION_TICKS})')
    simulate.add_argument('--dt', type=float, default=DEFAULT_TICK_SECONDS,
                          help='Real seconds per tick (default: 1/60)')
    simulate.add_argument('--speed', type=float, default=DEFAULT_SPEED_FACTOR,
                          help=f'Simulated seconds per real second (default: {DEFAULT_SPEED_FACTOR:g})')
    simulate.add_argument('--observer', type=float, nargs=3, metavar=('X', 'Y', 'Z'),
                          default=list(DEFAULT_OBSERVER_POSITION),
                          help='Observer position in world units')

    path = subparsers.add_parser('path', help='Export the orbit path of one body')
    _add_catalog_arguments(path)
    path.add_argument('body', help='Name of the body')
    path.add_argument('--segments', type=_positive_int, default=ORBIT_PATH_SEGMENTS,
                      help=f'Segments of a closed orbit (default: {ORBIT_PATH_SEGMENTS})')

    solve = subparsers.add_parser('solve', help="Solve Kepler's equation")
    solve.add_argument('mean_anomaly', type=float, help='Mean anomaly in radians')
    solve.add_argument('eccentricity', type=float, help='Eccentricity (>= 0)')

    return parser


def _print_header(title: str):
    print("\n" + CLI_HEADER_CHAR * CLI_DISPLAY_LINE_WIDTH)
    print(title)
    print(CLI_HEADER_CHAR * CLI_DISPLAY_LINE_WIDTH)


def _emit(df: pd.DataFrame, output: Optional[str], title: str):
    if output:
        df.to_csv(output, index=False)
        log.info(f"Results saved to {output}")
    else:
        _print_header(title)
        print(df.to_string(index=False, float_format=lambda v: f"{v:.{CLI_COORDINATE_PRECISION}f}"))


def run_simulate(args: argparse.Namespace) -> int:
    definitions = load_catalog(args.catalog, args.rate_unit)
    simulation = OrrerySimulation.from_definitions(definitions, speed_factor=args.speed,
                                                   au_scale=args.au_scale)

    log.info(f"Running {args.ticks} ticks of {args.dt:.4f}s for {len(simulation.bodies)} bodies "
             f"at speed x{args.speed:g}")
    simulation.run(args.ticks, args.dt, args.observer)

    _emit(simulation.snapshot(), args.output, f"State after {args.ticks} ticks")
    return 0


def run_path(args: argparse.Namespace) -> int:
    definitions = {definition.name: definition for definition in load_catalog(args.catalog, args.rate_unit)}
    if args.body not in definitions:
        log.error(f"Body '{args.body}' not found. Available: {', '.join(definitions)}")
        return 1

    points = sample_orbit_path(definitions[args.body].elements, args.segments, args.au_scale)
    df = pd.DataFrame(points, columns=['x', 'y', 'z'])
    _emit(df, args.output, f"Orbit path of {args.body} ({len(df)} points)")
    return 0


def run_solve(args: argparse.Namespace) -> int:
    E = solve_kepler(args.mean_anomaly, args.eccentricity)
    residual = kepler_residual(E, args.mean_anomaly, args.eccentricity)
    regime = classify_regime(args.eccentricity)

    _print_header(f"Kepler solve ({regime.value})")
    print(f"M        = {args.mean_anomaly:.10f} rad")
    print(f"e        = {args.eccentricity:.10f}")
    print(f"anomaly  = {E:.10f} rad ({np.degrees(E):.6f} deg)")
    print(f"residual = {residual:.3e}")
    return 0


COMMANDS = {
    'simulate': run_simulate,
    'path': run_path,
    'solve': run_solve,
}


def main(args_list: Optional[List[str]] = None):
    """Main entry point for the Orrery CLI.

    Args:
        args_list: Optional list of command line arguments.
                  If None, will parse from sys.argv
    """
    parser = create_argument_parser()
    args = parser.parse_args(args_list)

    level = logging.DEBUG if args.debug else getattr(logging, DEFAULT_LOG_LEVEL)
    logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT)

    try:
        status = COMMANDS[args.command](args)
    except (CatalogError, ConfigurationError) as e:
        log.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except ConvergenceError as e:
        log.error(f"Solver failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(130)

    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
