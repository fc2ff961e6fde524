#!/usr/bin/env python3
"""
Lattice Match Calculator
Determines ranges of the interface angle theta for coincident and commensurate
lattice matches between a substrate and an adlayer

Method as discussed in:
    Fritz, Torsten: Molecular Architecture in Heteroepitaxially Grown Organic
    Thin Films. Dresden: sfps - Wissenschaftlicher Fachverlag, 1999

Instead of a brute-force search, the ranges of theta are derived analytically.
The substrate interface unit cell is given by the lattice vector lengths a1, a2
and the angle alpha between them. For the adlayer, ranges of the lengths b1, b2
and of the angle beta are given. The epitaxy matrix reads

    ( px, qy )
    ( qx, py )

with
    px = b1*sin(alpha-theta)/(a1*sin(alpha))
    qx = b2*sin(alpha-theta-beta)/(a1*sin(alpha))
    qy = b1*sin(theta)/(a2*sin(alpha))
    py = b2*sin(theta+beta)/(a2*sin(alpha))

A coincident match has both entries of one column integer, a commensurate match
has all four entries integer.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional
import json
import logging
import math
import sys

import numpy as np

from angle_range import AngleRange
from angle_set import AngleSet


logger = logging.getLogger(__name__)

TITLE_X = "Possible coincident lattice matches with px, qx:"
TITLE_Y = "Possible coincident lattice matches with qy, py:"
TITLE_COMMENSURATE = "Possible commensurate lattice matches:"


@dataclass
class LatticeParameters:
    """Interface unit cells as entered by the user. Lengths in any unit, angles in degrees."""
    a1: float
    a2: float
    alpha: float
    b1min: float
    b1max: float
    b2min: float
    b2max: float
    betamin: float
    betamax: float

    def sanitized(self) -> 'SanitizedLattice':
        """
        Put the parameters in order: positive lengths, min <= max, angles in radians.

        Raises:
            ValueError: for non-finite values, zero lengths or an alpha that
                makes sin(alpha) vanish
        """
        values = asdict(self)
        for name, value in values.items():
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value}")

        p = dict(values)
        if (p['b1min'] * p['b2min'] < 0 or p['b1max'] * p['b2max'] < 0
                or p['b1min'] * p['b1max'] < 0):
            logger.warning("Negative values for b1, b2 don't make any sense. Putting them back in order.")
            p['betamin'] = 180.0 - p['betamin']
            p['betamax'] = 180.0 - p['betamax']
        if p['a1'] * p['a2'] < 0:
            logger.warning("Negative values for a1, a2 don't make any sense. Putting them back in order.")
            p['alpha'] = 180.0 - p['alpha']

        for name in ('a1', 'a2', 'b1min', 'b1max', 'b2min', 'b2max'):
            p[name] = abs(p[name])
            if p[name] == 0.0:
                raise ValueError(f"{name} must not be zero")

        for name in ('alpha', 'betamin', 'betamax'):
            p[name] = math.radians(p[name] % 360.0)

        for low, high in (('b1min', 'b1max'), ('b2min', 'b2max'), ('betamin', 'betamax')):
            if p[low] > p[high]:
                p[low], p[high] = p[high], p[low]

        if p['betamax'] - p['betamin'] > math.pi:
            logger.warning(
                "Sanitized betamax and betamin are more than 180 degrees apart. "
                "That's probably not what you intended (betamax: %g, betamin: %g). "
                "A beta range including zero is not supported.",
                math.degrees(p['betamax']), math.degrees(p['betamin']))

        sin_alpha = math.sin(p['alpha'])
        if abs(sin_alpha) < 1e-12:
            raise ValueError("alpha must not be a multiple of 180 degrees (sin(alpha) == 0)")

        return SanitizedLattice(sin_alpha=sin_alpha, **p)


@dataclass
class SanitizedLattice:
    """Parameters after sanitizing. Angles in radians."""
    a1: float
    a2: float
    alpha: float
    b1min: float
    b1max: float
    b2min: float
    b2max: float
    betamin: float
    betamax: float
    sin_alpha: float


def max_order(b_max: float, lattice_a: float, sin_alpha: float) -> int:
    """Largest |n| for which n*a*sin(alpha)/b can reach the range of asin"""
    return int(abs(b_max / (lattice_a * sin_alpha)))


def solution_ranges(base: float, asin_sign: float, branch_shift: float,
                    lattice_a: float, b_min: float, b_max: float, sin_alpha: float,
                    beta_min: float = 0.0, beta_max: float = 0.0, beta_weight: float = 0.0,
                    clamp: bool = True) -> np.ndarray:
    """
    Candidate theta ranges for one entry of the epitaxy matrix.

    For every integer order n in [-N, N] the entry equation gives
    sin(...) = n*a*sin(alpha)/b, which has two solutions because asin isn't
    unique:

        theta = base - beta_weight*beta + asin_sign*asin(x)
        theta = base - beta_weight*beta + branch_shift - asin_sign*asin(x)

    Both are monotonic in b and beta, so the extremes over the box
    [b_min, b_max] x [beta_min, beta_max] sit on its corners.

    Args:
        base: Constant part of theta (alpha for px/qx, 0 for qy/py)
        asin_sign: Sign of asin in the first branch
        branch_shift: Offset of the second branch (+-pi)
        lattice_a: Substrate lattice length of this row (a1 or a2)
        b_min, b_max: Range of the adlayer lattice length of this entry
        sin_alpha: sin of the substrate angle
        beta_min, beta_max: Range of the adlayer angle, radians
        beta_weight: 1 if the entry depends on beta, else 0
        clamp: Clamp asin arguments into [-1, 1]

    Returns:
        Array of shape (4N+2, 2) holding raw (lower, upper) bounds in radians,
        not yet shifted into [0, 2*pi)
    """
    n_max = max_order(b_max, lattice_a, sin_alpha)
    orders = np.arange(-n_max, n_max + 1, dtype=float)[:, np.newaxis]

    # Corners of the (b, beta) box
    lengths = np.array([b_min, b_max, b_min, b_max])
    betas = np.array([beta_min, beta_min, beta_max, beta_max])

    args = orders * lattice_a * sin_alpha / lengths
    if clamp:
        args = np.clip(args, -1.0, 1.0)
    with np.errstate(invalid='ignore'):
        arcsin = np.arcsin(args)

    offset = base - beta_weight * betas
    first = offset + asin_sign * arcsin
    second = offset + branch_shift - asin_sign * arcsin

    candidates = np.stack([first, second], axis=1)
    bounds = np.stack([candidates.min(axis=2), candidates.max(axis=2)], axis=2)
    return bounds.reshape(-1, 2)


@dataclass
class LatticeMatchResult:
    coincident_x: AngleSet
    coincident_y: AngleSet
    commensurate: AngleSet

    def to_dict(self) -> Dict[str, List[List[float]]]:
        return {
            'coincident_px_qx': [list(bounds) for bounds in self.coincident_x.degrees()],
            'coincident_qy_py': [list(bounds) for bounds in self.coincident_y.degrees()],
            'commensurate': [list(bounds) for bounds in self.commensurate.degrees()],
        }


class LatticeMatchCalculator:
    def __init__(self, clamp_asin: bool = True):
        """
        Args:
            clamp_asin: Clamp asin arguments into [-1, 1] to absorb rounding errors
        """
        self.clamp_asin = clamp_asin

    def entry_sets(self, lattice: SanitizedLattice) -> Dict[str, AngleSet]:
        """Candidate theta ranges of px, qx, qy and py, each collected in an AngleSet"""
        s = lattice.sin_alpha
        beta = dict(beta_min=lattice.betamin, beta_max=lattice.betamax)
        raw = {
            'px': solution_ranges(lattice.alpha, -1.0, -math.pi, lattice.a1,
                                  lattice.b1min, lattice.b1max, s, clamp=self.clamp_asin),
            'qx': solution_ranges(lattice.alpha, -1.0, -math.pi, lattice.a1,
                                  lattice.b2min, lattice.b2max, s, beta_weight=1.0,
                                  clamp=self.clamp_asin, **beta),
            'qy': solution_ranges(0.0, 1.0, math.pi, lattice.a2,
                                  lattice.b1min, lattice.b1max, s, clamp=self.clamp_asin),
            'py': solution_ranges(0.0, 1.0, math.pi, lattice.a2,
                                  lattice.b2min, lattice.b2max, s, beta_weight=1.0,
                                  clamp=self.clamp_asin, **beta),
        }

        sets = {}
        for name, bounds in raw.items():
            angle_set = AngleSet()
            angle_set.extend(AngleRange(float(lower), float(upper)) for lower, upper in bounds)
            sets[name] = angle_set
            logger.debug("%s: %d candidate range(s), %d after merging",
                         name, len(bounds), len(angle_set))
        return sets

    def calculate(self, params: LatticeParameters) -> LatticeMatchResult:
        lattice = params.sanitized()
        sets = self.entry_sets(lattice)

        coincident_x = sets['px'].overlap(sets['qx'])
        coincident_y = sets['qy'].overlap(sets['py'])
        commensurate = coincident_x.overlap(coincident_y)

        for angle_set in (coincident_x, coincident_y, commensurate):
            angle_set.sort()

        logger.debug("Found %d coincident (px, qx), %d coincident (qy, py), %d commensurate range(s)",
                     len(coincident_x), len(coincident_y), len(commensurate))
        return LatticeMatchResult(coincident_x, coincident_y, commensurate)


def format_ranges(title: str, angle_set: AngleSet) -> str:
    """Title line followed by one 'lower upper' line (degrees) per range"""
    lines = [title]
    for lower, upper in angle_set.degrees():
        lines.append(f"{lower:g} {upper:g}")
    return "\n".join(lines)


def format_result(result: LatticeMatchResult) -> str:
    return "\n".join([
        format_ranges(TITLE_X, result.coincident_x),
        format_ranges(TITLE_Y, result.coincident_y),
        format_ranges(TITLE_COMMENSURATE, result.commensurate),
    ])


def main(argv: Optional[List[str]] = None):
    import argparse
    from logging_config import setup_logging

    parser = argparse.ArgumentParser(
        description='Calculate ranges of the interface angle theta for coincident and '
                    'commensurate lattice matches. Please input angles in degrees.'
    )
    for name, help_text in (
            ('a1', 'Substrate lattice vector length a1'),
            ('a2', 'Substrate lattice vector length a2'),
            ('alpha', 'Angle between a1 and a2 (degrees)'),
            ('b1min', 'Minimum adlayer lattice vector length b1'),
            ('b1max', 'Maximum adlayer lattice vector length b1'),
            ('b2min', 'Minimum adlayer lattice vector length b2'),
            ('b2max', 'Maximum adlayer lattice vector length b2'),
            ('betamin', 'Minimum angle between b1 and b2 (degrees)'),
            ('betamax', 'Maximum angle between b1 and b2 (degrees)')):
        parser.add_argument(name, type=float, help=help_text)
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Print debug information (range counts, merging)')
    parser.add_argument('--log-file', help='Also write log messages to this file')
    parser.add_argument('--plot', help='Save a polar plot of the results to this file')
    parser.add_argument('--json', action='store_true',
                        help='Print results as JSON instead of plain text')
    parser.add_argument('--no-clamp', action='store_true',
                        help='Do not clamp asin arguments into [-1, 1]')

    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING,
                  log_file=args.log_file)

    params = LatticeParameters(
        a1=args.a1, a2=args.a2, alpha=args.alpha,
        b1min=args.b1min, b1max=args.b1max,
        b2min=args.b2min, b2max=args.b2max,
        betamin=args.betamin, betamax=args.betamax
    )

    try:
        calculator = LatticeMatchCalculator(clamp_asin=not args.no_clamp)
        result = calculator.calculate(params)

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print(format_result(result))

        if args.plot:
            from visualize_matches import plot_matches
            plot_matches(result, params, output=args.plot)
            logger.info("Saved plot: %s", args.plot)

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
