#!/usr/bin/env python3
"""
Tests for the lattice match calculator: sanitizing, branch generation,
the set pipeline and the command-line interface
"""
import json
import logging
import math

import numpy as np
import pytest

import logging_config
from angle_range import AngleRange
from angle_set import AngleSet
from lattice_match import (
    LatticeMatchCalculator,
    LatticeParameters,
    format_ranges,
    main,
    max_order,
    solution_ranges,
)


def square_lattice(**overrides):
    """Identical square lattices for substrate and adlayer"""
    values = dict(a1=1.0, a2=1.0, alpha=90.0, b1min=1.0, b1max=1.0,
                  b2min=1.0, b2max=1.0, betamin=90.0, betamax=90.0)
    values.update(overrides)
    return LatticeParameters(**values)


@pytest.fixture
def no_logging_setup(monkeypatch):
    """Keep main() from replacing the root handlers during tests"""
    monkeypatch.setattr(logging_config, 'setup_logging', lambda **kwargs: None)


# --- sanitizing ---

def test_sanitize_converts_angles_to_radians():
    lattice = square_lattice(alpha=450.0, betamin=-90.0, betamax=-80.0).sanitized()
    assert lattice.alpha == pytest.approx(math.pi / 2)
    assert lattice.betamin == pytest.approx(math.radians(270.0))
    assert lattice.betamax == pytest.approx(math.radians(280.0))
    assert lattice.sin_alpha == pytest.approx(1.0)


def test_sanitize_swaps_min_and_max():
    lattice = square_lattice(b1min=3.0, b1max=2.0, b2min=5.0, b2max=4.0,
                             betamin=100.0, betamax=80.0).sanitized()
    assert (lattice.b1min, lattice.b1max) == (2.0, 3.0)
    assert (lattice.b2min, lattice.b2max) == (4.0, 5.0)
    assert lattice.betamin == pytest.approx(math.radians(80.0))
    assert lattice.betamax == pytest.approx(math.radians(100.0))


def test_sanitize_negative_substrate_length(caplog):
    with caplog.at_level(logging.WARNING):
        lattice = square_lattice(a2=-2.0, alpha=60.0).sanitized()
    assert lattice.a2 == 2.0
    assert lattice.alpha == pytest.approx(math.radians(120.0))
    assert "a1, a2" in caplog.text


def test_sanitize_negative_adlayer_length(caplog):
    with caplog.at_level(logging.WARNING):
        lattice = square_lattice(b2min=-1.0, b2max=-1.5, betamin=60.0, betamax=70.0).sanitized()
    assert (lattice.b2min, lattice.b2max) == (1.0, 1.5)
    assert lattice.betamin == pytest.approx(math.radians(110.0))
    assert lattice.betamax == pytest.approx(math.radians(120.0))
    assert "b1, b2" in caplog.text


def test_sanitize_warns_about_wide_beta_range(caplog):
    with caplog.at_level(logging.WARNING):
        square_lattice(betamin=10.0, betamax=200.0).sanitized()
    assert "more than 180 degrees" in caplog.text


def test_sanitize_does_not_modify_input():
    params = square_lattice(a1=-1.0)
    params.sanitized()
    assert params.a1 == -1.0


@pytest.mark.parametrize("overrides", [
    dict(a1=0.0),
    dict(b2min=0.0),
    dict(alpha=0.0),
    dict(alpha=180.0),
    dict(b1max=float('nan')),
    dict(betamax=float('inf')),
])
def test_sanitize_rejects_invalid_input(overrides):
    with pytest.raises(ValueError):
        square_lattice(**overrides).sanitized()


# --- branch generation ---

def test_max_order():
    assert max_order(2.5, 1.0, 1.0) == 2
    assert max_order(0.5, 1.0, 1.0) == 0
    assert max_order(3.0, 1.0, -1.0) == 3


@pytest.mark.parametrize("b_max, expected", [(0.5, 2), (1.0, 6), (2.5, 10)])
def test_number_of_candidate_ranges(b_max, expected):
    bounds = solution_ranges(math.pi / 2, -1.0, -math.pi, 1.0, 0.5, b_max, 1.0)
    assert bounds.shape == (expected, 2)
    assert np.all(bounds[:, 0] <= bounds[:, 1])


def test_zero_order_ranges():
    alpha = math.pi / 2
    bounds = solution_ranges(alpha, -1.0, -math.pi, 1.0, 0.2, 0.5, 1.0)
    assert bounds[0] == pytest.approx([alpha, alpha])
    assert bounds[1] == pytest.approx([alpha - math.pi, alpha - math.pi])


def test_zero_order_ranges_with_beta():
    alpha = math.pi / 2
    beta_min, beta_max = math.radians(80), math.radians(100)
    bounds = solution_ranges(alpha, -1.0, -math.pi, 1.0, 0.2, 0.5, 1.0,
                             beta_min=beta_min, beta_max=beta_max, beta_weight=1.0)
    assert bounds[0] == pytest.approx([alpha - beta_max, alpha - beta_min])
    assert bounds[1] == pytest.approx([alpha - beta_max - math.pi, alpha - beta_min - math.pi])


def test_px_ranges_for_positive_sin_alpha():
    alpha, a1, b1min, b1max = math.pi / 2, 1.0, 2.0, 3.0
    bounds = solution_ranges(alpha, -1.0, -math.pi, a1, b1min, b1max, math.sin(alpha))
    assert bounds.shape == (14, 2)
    # Orders run from -3 to 3, two branches each: n = 1 sits in rows 8 and 9
    assert bounds[8] == pytest.approx([alpha - math.asin(1 / 2), alpha - math.asin(1 / 3)])
    assert bounds[9] == pytest.approx([alpha - math.pi + math.asin(1 / 3),
                                       alpha - math.pi + math.asin(1 / 2)])
    # n = -1
    assert bounds[4] == pytest.approx([alpha + math.asin(1 / 3), alpha + math.asin(1 / 2)])


def test_px_ranges_for_negative_sin_alpha():
    alpha, a1, b1min, b1max = 3 * math.pi / 2, 1.0, 2.0, 3.0
    bounds = solution_ranges(alpha, -1.0, -math.pi, a1, b1min, b1max, math.sin(alpha))
    assert bounds[8] == pytest.approx([alpha + math.asin(1 / 3), alpha + math.asin(1 / 2)])


def test_asin_arguments_are_clamped():
    # n = 3 with b_min = 2 gives an argument of 1.5
    bounds = solution_ranges(0.0, 1.0, math.pi, 1.0, 2.0, 3.0, 1.0)
    assert not np.isnan(bounds).any()
    assert bounds[12] == pytest.approx([math.pi / 2, math.pi / 2])


def test_entry_sets_hold_merged_ranges():
    calculator = LatticeMatchCalculator()
    sets = calculator.entry_sets(square_lattice(b1max=1.5, b2max=2.0).sanitized())
    assert set(sets) == {'px', 'qx', 'qy', 'py'}
    for angle_set in sets.values():
        assert isinstance(angle_set, AngleSet)
        assert not angle_set.is_empty()
        # merged ranges are pairwise disjoint
        ranges = angle_set.get_ranges()
        for i, first in enumerate(ranges):
            for second in ranges[i + 1:]:
                assert first.combine(second).is_empty()


# --- full calculation ---

def test_identical_square_lattices_match_at_right_angles():
    result = LatticeMatchCalculator().calculate(square_lattice())
    for theta in (0.0, math.pi / 2):
        assert any(r.is_inside(theta) for r in result.coincident_x)
        assert any(r.is_inside(theta) for r in result.coincident_y)
        assert any(r.is_inside(theta) for r in result.commensurate)


def test_commensurate_is_inside_both_coincident_families():
    params = LatticeParameters(a1=2.46, a2=2.46, alpha=120.0, b1min=4.0, b1max=4.5,
                               b2min=4.0, b2max=4.5, betamin=85.0, betamax=95.0)
    result = LatticeMatchCalculator().calculate(params)
    for angle_range in result.commensurate:
        # sample the middle of every commensurate range
        middle = angle_range.lower + angle_range.span() / 2.0
        assert any(r.is_inside(middle) for r in result.coincident_x)
        assert any(r.is_inside(middle) for r in result.coincident_y)


def test_results_are_sorted():
    params = LatticeParameters(a1=2.46, a2=2.46, alpha=120.0, b1min=4.0, b1max=6.0,
                               b2min=4.0, b2max=6.0, betamin=60.0, betamax=120.0)
    result = LatticeMatchCalculator().calculate(params)
    lowers = [lower for lower, _ in result.coincident_x.degrees()]
    assert lowers == sorted(lowers)


# --- output ---

def test_format_ranges():
    angle_set = AngleSet()
    angle_set.add(AngleRange.from_degrees(0, 10))
    angle_set.add(AngleRange.from_degrees(100.5, 120.25))
    angle_set.sort()
    text = format_ranges("Title:", angle_set)
    assert text.splitlines() == ["Title:", "0 10", "100.5 120.25"]


def test_format_full_circle():
    text = format_ranges("Title:", AngleSet(AngleRange.full_circle()))
    assert text.splitlines() == ["Title:", "0 360"]


def test_main_prints_three_blocks(capsys, no_logging_setup):
    main(['1', '1', '90', '1', '1', '1', '1', '90', '90'])
    out = capsys.readouterr().out
    assert "Possible coincident lattice matches with px, qx:" in out
    assert "Possible coincident lattice matches with qy, py:" in out
    assert "Possible commensurate lattice matches:" in out


def test_main_json(capsys, no_logging_setup):
    main(['1', '1', '90', '1', '1', '1', '1', '90', '90', '--json'])
    data = json.loads(capsys.readouterr().out)
    assert set(data) == {'coincident_px_qx', 'coincident_qy_py', 'commensurate'}
    assert any(lower == pytest.approx(0.0) for lower, _ in data['commensurate'])


def test_main_reports_errors(capsys, no_logging_setup):
    with pytest.raises(SystemExit) as excinfo:
        main(['0', '1', '90', '1', '1', '1', '1', '90', '90'])
    assert excinfo.value.code == 1
    assert "Error:" in capsys.readouterr().err
