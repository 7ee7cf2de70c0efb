"""Tests for variance propagation and T2* estimation."""

import pytest

from qnoise_sim.config import SimulationConfig, update_param
from qnoise_sim.simulator import presets
from qnoise_sim.simulator.coherence import (
  CoherenceEstimator,
  propagate_noise_variance,
  t2_star,
)
from qnoise_sim.simulator.constants import DEPHASING_SCALE
from qnoise_sim.simulator.noise import pink_noise_variance


class TestVariancePropagation:
  """Tests for the analytic noise budget."""

  def test_quantization_only(self) -> None:
    """Test that an ideal line only carries quantization noise."""
    budget = propagate_noise_variance(presets.ideal(resolution=8))
    step = 2.0**-8
    assert budget.awg == 0.0
    assert budget.dac == pytest.approx(step**2 / 12)
    assert budget.qubit == pytest.approx(step**2 / 12)

  def test_phase_jitter(self) -> None:
    """Test the AWG jitter term 0.5 A^2 Var(jitter)."""
    config = update_param(presets.ideal(), "awg", "phase_noise", 0.02)
    config = update_param(config, "awg", "amp", 2.0)
    width = 5 * 0.02
    expected = 0.5 * 4.0 * width**2 / 12
    assert propagate_noise_variance(config).awg == pytest.approx(expected)

  def test_stage_gain_scales_upstream_noise(self) -> None:
    """Test that each line scales the incoming variance by its squared gain."""
    config = SimulationConfig()
    budget = propagate_noise_variance(config, pink_variance=0.0)
    room_thermal = 300.0 * 0.002**2
    room_gain_sq = 10 ** (-6 / 20)
    assert budget.cable_room == pytest.approx(budget.dac * room_gain_sq + room_thermal)
    cryo_thermal = 0.02 * 0.002**2
    assert budget.cable_cryo == pytest.approx(budget.cable_room * 1e-2 + cryo_thermal)
    assert budget.qubit == pytest.approx(budget.cable_cryo * 0.81)

  def test_flicker_term(self) -> None:
    """Test that 1/f noise adds (flicker * 0.02)^2 Var(pink)."""
    base = presets.ideal()
    flicker = base.model_copy(
      update={"cable_cryo": base.cable_cryo.model_copy(update={"flicker_noise": 0.5})}
    )
    delta = (
      propagate_noise_variance(flicker).qubit - propagate_noise_variance(base).qubit
    )
    assert delta == pytest.approx((0.5 * 0.02) ** 2 * pink_noise_variance())


class TestT2Star:
  """Tests for the T2* formula."""

  def test_ceiling(self) -> None:
    """Test that zero noise gives the 2 * T1 limit."""
    assert t2_star(0.0, 30.0) == pytest.approx(60.0)

  def test_formula(self) -> None:
    """Test 1 / (1/(2 T1) + var * scale)."""
    var = 1e-5
    assert t2_star(var, 30.0) == pytest.approx(1 / (1 / 60 + var * DEPHASING_SCALE))

  def test_never_exceeds_ceiling(self) -> None:
    """Test the upper bound for any variance."""
    for var in (0.0, 1e-12, 1e-3, 1.0, -1.0):
      assert t2_star(var, 12.0) <= 24.0

  def test_unbounded_noise_gives_zero(self) -> None:
    """Test that an infinite noise variance leaves no coherence."""
    assert t2_star(float("inf"), 30.0) == 0.0

  def test_undefined_variance_gives_ceiling(self) -> None:
    """Test that a NaN variance falls back to the T1 limit."""
    assert t2_star(float("nan"), 30.0) == 60.0

  def test_extreme_amplitude_overflows_to_inf(self) -> None:
    """Test that huge amplitudes overflow to inf instead of raising."""
    config = update_param(SimulationConfig(), "awg", "amp", 1e200)
    budget = propagate_noise_variance(config)
    assert budget.awg == float("inf")
    assert t2_star(budget.total, config.qubit.t1_us) == 0.0

  def test_monotonic_up_to_overflow(self) -> None:
    """Test that T2* keeps falling as the amplitude grows past float range."""
    t2 = []
    for amp in (1.0, 1e10, 1e100, 1e200, 1e300):
      config = update_param(SimulationConfig(), "awg", "amp", amp)
      t2.append(t2_star(propagate_noise_variance(config).total, 30.0))
    assert all(b <= a for a, b in zip(t2, t2[1:], strict=False))
    assert t2[-1] == 0.0

  @pytest.mark.parametrize(
    ("section", "key", "values"),
    [
      ("awg", "phase_noise", [0.0, 0.001, 0.01, 0.1]),
      ("cable_room", "temp", [0.0, 4.0, 77.0, 300.0, 1000.0]),
      ("cable_cryo", "temp", [0.0, 0.02, 1.0, 4.0]),
      ("cable_cryo", "flicker_noise", [0.0, 0.5, 2.0, 10.0]),
    ],
  )
  def test_monotonic_in_noise(self, section, key, values) -> None:
    """Test that T2* never increases as a noise source grows."""
    t2 = []
    for value in values:
      config = update_param(SimulationConfig(), section, key, value)
      t2.append(t2_star(propagate_noise_variance(config).total, config.qubit.t1_us))
    assert all(b <= a for a, b in zip(t2, t2[1:], strict=False))
    assert all(v <= 60.0 for v in t2)


class TestCoherenceEstimator:
  """Tests for the smoothed estimate."""

  def test_first_update_seeds(self) -> None:
    """Test that the first value is taken as-is."""
    config = SimulationConfig()
    estimator = CoherenceEstimator()
    expected = t2_star(propagate_noise_variance(config).total, 30.0)
    assert estimator.update(config) == pytest.approx(expected)

  def test_exponential_smoothing(self) -> None:
    """Test the 0.95 / 0.05 blend after a configuration change."""
    estimator = CoherenceEstimator()
    first = estimator.update(presets.ideal())
    noisy = SimulationConfig()
    current = t2_star(propagate_noise_variance(noisy).total, 30.0)
    assert estimator.update(noisy) == pytest.approx(first * 0.95 + current * 0.05)

  def test_ideal_converges_to_ceiling(self) -> None:
    """Test CW, no noise, 16 bits, coupling 1, T1 = 30 us -> 60 us."""
    estimator = CoherenceEstimator()
    estimator.update(SimulationConfig())  # start far from the ceiling
    config = presets.ideal(t1_us=30.0, resolution=16)
    for _ in range(400):
      t2 = estimator.update(config)
    assert t2 == pytest.approx(60.0, rel=1e-4)

  def test_reset(self) -> None:
    """Test that reset forgets the running average."""
    estimator = CoherenceEstimator()
    estimator.update(SimulationConfig())
    estimator.reset()
    assert estimator.smoothed is None
    assert estimator.update(presets.ideal()) == pytest.approx(60.0, rel=1e-4)
