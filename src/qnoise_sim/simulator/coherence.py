"""Coherence-time estimation by analytic noise-variance propagation.

Instead of comparing the noisy and ideal buffers (which filter group delay
corrupts), the variance injected by every noise source is carried through
the same gain stages as the signal and converted to a dephasing rate at the
qubit.
"""

import logging

import numpy as np
from pydantic import BaseModel

from qnoise_sim.config import CableParams, NoiseType, SimulationConfig
from qnoise_sim.simulator.chain import chain_added_variance, chain_gain
from qnoise_sim.simulator.constants import (
  DEPHASING_SCALE,
  SAMPLE_RATE,
  offset_to_visual,
)
from qnoise_sim.simulator.noise import interference_variance, pink_noise_variance
from qnoise_sim.simulator.synthesis import phase_jitter_width, quantization_step

logger = logging.getLogger(__name__)

THERMAL_SCALE = 0.002  # V per sqrt(K)
FLICKER_SCALE = 0.02
SMOOTHING = 0.95
_MIN_T1_US = 1e-6


class NoiseBudget(BaseModel):
  """Accumulated noise variance (V^2) at the output of each stage."""

  awg: float
  dac: float
  cable_room: float
  cable_cryo: float
  qubit: float

  model_config = {"frozen": True}

  @property
  def total(self) -> float:
    """Variance seen by the qubit."""
    return self.qubit


def thermal_std(cable: CableParams) -> float:
  """Standard deviation of the thermal noise injected by a line."""
  return np.sqrt(cable.temp) * THERMAL_SCALE * cable.noise_intensity


def flicker_gain(cable: CableParams) -> float:
  """Scale applied to the pink generator output for a line."""
  return cable.flicker_noise * FLICKER_SCALE


def _cable_variance(
  variance: float, cable: CableParams, pink_variance: float, interference: bool
) -> float:
  # Squares go through numpy so extreme settings overflow to inf.
  variance *= np.square(chain_gain(cable.components))
  variance += chain_added_variance(cable.components)
  variance += np.square(thermal_std(cable))
  if interference and cable.noise_type is NoiseType.INTERFERENCE:
    variance += interference_variance(cable.noise_intensity)
  variance += np.square(flicker_gain(cable)) * pink_variance
  return variance


def propagate_noise_variance(
  config: SimulationConfig, pink_variance: float | None = None
) -> NoiseBudget:
  """Carry every injected noise variance through to the qubit.

  Args:
    config: Simulation configuration.
    pink_variance: Stationary variance of the 1/f generator; defaults to the
      analytic value for `PinkNoiseGenerator`.

  Returns:
    The per-stage noise budget.
  """
  if pink_variance is None:
    pink_variance = pink_noise_variance()

  amp_sq = np.square(config.awg.amp)
  jitter_var = np.square(phase_jitter_width(config.awg.phase_noise)) / 12.0
  awg = 0.5 * amp_sq * jitter_var

  clock_rad = 2.0 * np.pi * offset_to_visual(config.awg.nco_freq) / SAMPLE_RATE
  clock_var = np.square(clock_rad * config.dac.sample_jitter) / 12.0
  step = quantization_step(config.dac.resolution)
  dac = awg + 0.5 * amp_sq * clock_var + step**2 / 12.0

  room = _cable_variance(dac, config.cable_room, pink_variance, interference=True)
  cryo = _cable_variance(room, config.cable_cryo, pink_variance, interference=False)
  qubit = cryo * config.qubit.coupling**2

  return NoiseBudget(awg=awg, dac=dac, cable_room=room, cable_cryo=cryo, qubit=qubit)


def t2_star(variance: float, t1_us: float) -> float:
  """T2* in µs for a given noise variance at the qubit.

  Γ2 = 1/(2 T1) + variance * DEPHASING_SCALE, T2* = 1/Γ2, never above the
  T1-limited ceiling of 2 T1. Unbounded noise gives zero; an undefined
  (NaN) variance falls back to the ceiling.
  """
  t1 = max(t1_us, _MIN_T1_US)
  ceiling = 2.0 * t1
  gamma_2 = 1.0 / ceiling + max(variance, 0.0) * DEPHASING_SCALE
  if np.isnan(gamma_2) or gamma_2 <= 0:
    return ceiling
  if np.isinf(gamma_2):
    return 0.0
  return min(1.0 / gamma_2, ceiling)


class CoherenceEstimator:
  """Exponentially smoothed T2* estimate.

  The first update seeds the average; later ones blend in 5% of the new
  value.
  """

  def __init__(
    self, smoothing: float = SMOOTHING, pink_variance: float | None = None
  ) -> None:
    self.smoothing = smoothing
    if pink_variance is None:
      pink_variance = pink_noise_variance()
    self._pink_variance = pink_variance
    self._smoothed: float | None = None
    self.last_budget: NoiseBudget | None = None

  @property
  def smoothed(self) -> float | None:
    return self._smoothed

  def reset(self) -> None:
    self._smoothed = None
    self.last_budget = None

  def update(self, config: SimulationConfig) -> float:
    """Fold the T2* of `config` into the running average and return it."""
    budget = propagate_noise_variance(config, self._pink_variance)
    current = t2_star(budget.total, config.qubit.t1_us)
    logger.debug(f"T2* {current:.3f} us from variance {budget.total:.3e} V^2")
    if self._smoothed is None:
      self._smoothed = current
    else:
      blend = current * (1.0 - self.smoothing)
      self._smoothed = self._smoothed * self.smoothing + blend
    self.last_budget = budget
    return self._smoothed
