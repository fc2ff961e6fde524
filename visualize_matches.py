#!/usr/bin/env python3
"""
Visualization of Lattice Match Results

Draws the theta ranges found by the lattice match calculator on a polar plot:
1. Outer ring: coincident matches with px, qx
2. Middle ring: coincident matches with qy, py
3. Inner ring: commensurate matches
"""

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from angle_range import AngleRange, TWO_PI
from angle_set import AngleSet
from lattice_match import LatticeMatchCalculator, LatticeMatchResult, LatticeParameters


RINGS = (
    ('coincident_x', 'Coincident (px, qx)', 3.0, 'tab:blue'),
    ('coincident_y', 'Coincident (qy, py)', 2.0, 'tab:orange'),
    ('commensurate', 'Commensurate', 1.0, 'tab:red'),
)


def arc_theta(angle_range: AngleRange, samples: int = 100) -> np.ndarray:
    """
    Sample theta values (radians) along a range, clockwise from lower to upper.

    Ranges around zero come out as one continuous run through zero, a full
    circle as the complete turn.
    """
    if angle_range.is_empty():
        return np.array([])
    if angle_range.is_circle():
        return np.linspace(0.0, TWO_PI, samples)
    start = angle_range.lower.value
    return np.linspace(start, start + angle_range.span().value, samples)


def draw_ring(ax, angle_set: AngleSet, radius: float, color: str, label: str):
    """Draw every range of angle_set as an arc of the given radius"""
    first = True
    for angle_range in angle_set:
        theta = arc_theta(angle_range)
        if theta.size == 0:
            continue
        if angle_range.lower == angle_range.upper and not angle_range.is_circle():
            # Single angle: show as a marker, a zero-length line is invisible
            ax.plot([theta[0]], [radius], 'o', color=color, markersize=5,
                    label=label if first else None)
        else:
            ax.plot(theta, np.full(theta.shape, radius), '-', color=color, linewidth=4,
                    solid_capstyle='butt', label=label if first else None)
        first = False

    # Faint guide circle for the ring
    guide = np.linspace(0.0, TWO_PI, 200)
    ax.plot(guide, np.full(guide.shape, radius), ':', color=color, alpha=0.3, linewidth=1)


def plot_matches(result: LatticeMatchResult, params: Optional[LatticeParameters] = None,
                 output: Optional[str] = None, dpi: int = 150, show: bool = False):
    """
    Create a polar plot of all result ranges.

    Args:
        result: Output of LatticeMatchCalculator.calculate()
        params: Parameters used for the calculation, shown in the title
        output: Save the figure to this path if given
        dpi: Resolution for saving
        show: Open an interactive window

    Returns:
        The matplotlib figure
    """
    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(111, projection='polar')

    for attribute, label, radius, color in RINGS:
        draw_ring(ax, getattr(result, attribute), radius, color, label)

    ax.set_ylim(0, 3.5)
    ax.set_yticks([])
    ax.set_xticks(np.radians(np.arange(0, 360, 30)))
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8, loc='upper right', bbox_to_anchor=(1.15, 1.1))

    title = 'Lattice Match Ranges of θ'
    if params is not None:
        title += (f"\na1={params.a1:g}, a2={params.a2:g}, α={params.alpha:g}°, "
                  f"b1=[{params.b1min:g}, {params.b1max:g}], b2=[{params.b2min:g}, {params.b2max:g}], "
                  f"β=[{params.betamin:g}°, {params.betamax:g}°]")
    ax.set_title(title, fontsize=10)
    fig.tight_layout()

    if output:
        fig.savefig(output, dpi=dpi, bbox_inches='tight')
    if show:
        plt.show()
    else:
        plt.close(fig)
    return fig


def main():
    import argparse

    parser = argparse.ArgumentParser(
        description='Plot lattice match ranges of theta on a polar diagram',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python visualize_matches.py 2.46 2.46 120 4.0 4.5 4.0 4.5 80 100
  python visualize_matches.py 2.46 2.46 120 4.0 4.5 4.0 4.5 80 100 -o output/matches.png --no-show
        '''
    )
    for name in ('a1', 'a2', 'alpha', 'b1min', 'b1max', 'b2min', 'b2max', 'betamin', 'betamax'):
        parser.add_argument(name, type=float)
    parser.add_argument('-o', '--output', help='Save the plot to this file')
    parser.add_argument('--dpi', type=int, default=150, help='Output DPI (default: 150)')
    parser.add_argument('--no-show', action='store_true', help='Do not display the plot (just save it)')

    args = parser.parse_args()

    params = LatticeParameters(
        a1=args.a1, a2=args.a2, alpha=args.alpha,
        b1min=args.b1min, b1max=args.b1max,
        b2min=args.b2min, b2max=args.b2max,
        betamin=args.betamin, betamax=args.betamax
    )
    result = LatticeMatchCalculator().calculate(params)

    print(f"Coincident (px, qx): {len(result.coincident_x)} range(s)")
    print(f"Coincident (qy, py): {len(result.coincident_y)} range(s)")
    print(f"Commensurate:        {len(result.commensurate)} range(s)")

    plot_matches(result, params, output=args.output, dpi=args.dpi, show=not args.no_show)
    if args.output:
        print(f"✓ Saved: {args.output}")


if __name__ == "__main__":
    main()
