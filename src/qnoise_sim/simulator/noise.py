"""Stochastic noise sources.

Every generator draws from an injected uniform source instead of a module
level random state, so tests can substitute deterministic sequences and
independent simulations never share a stream. Any object with numpy's
`Generator.random(size)` signature works.
"""

import logging
from typing import Protocol

import numpy as np
import numpy.typing as npt
from scipy import signal as scipy_signal

logger = logging.getLogger(__name__)


class UniformSource(Protocol):
  """Source of uniform samples in [0, 1)."""

  def random(self, size: int | None = None) -> npt.ArrayLike: ...


def resolve_rng(rng: UniformSource | None, seed: int | None) -> UniformSource:
  """Return `rng` if given, otherwise a fresh numpy Generator seeded with `seed`."""
  return rng if rng is not None else np.random.default_rng(seed)


def draw_uniform(rng: UniformSource, n: int) -> npt.NDArray[np.float64]:
  """Draw `n` uniforms in [0, 1) as a float64 array."""
  return np.asarray(rng.random(n), dtype=np.float64).reshape(n)


def draw_centered(rng: UniformSource, n: int) -> npt.NDArray[np.float64]:
  """Draw `n` uniforms in [-0.5, 0.5)."""
  return draw_uniform(rng, n) - 0.5


class WhiteNoiseGenerator:
  """Standard-normal samples via the Box-Muller transform."""

  def __init__(self, rng: UniformSource | None = None, seed: int | None = None) -> None:
    self._rng = resolve_rng(rng, seed)

  def generate(self, n: int) -> npt.NDArray[np.float64]:
    """Return `n` independent N(0, 1) samples."""
    # 1 - u maps [0, 1) onto (0, 1], keeping log() finite.
    u1 = np.maximum(1.0 - draw_uniform(self._rng, n), np.finfo(np.float64).tiny)
    u2 = draw_uniform(self._rng, n)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)

  def next(self) -> float:
    """Return a single N(0, 1) sample."""
    return float(self.generate(1)[0])


# Paul Kellett's refined pink filter: six leaky integrators, one delayed
# white tap and a direct white path.
PINK_POLES = np.array([0.99886, 0.99332, 0.96900, 0.86650, 0.55000, -0.7616])
PINK_GAINS = np.array(
  [0.0555179, 0.0750759, 0.1538520, 0.3104856, 0.5329522, -0.0168980]
)
PINK_DELAYED_GAIN = 0.115926
PINK_DIRECT_GAIN = 0.5362
PINK_OUTPUT_SCALE = 0.11
PINK_TAPS = len(PINK_POLES) + 1
_UNIFORM_PM1_VARIANCE = 1.0 / 3.0


def pink_noise_variance() -> float:
  """Stationary variance of `PinkNoiseGenerator` output.

  The taps are AR(1) filters driven by the same white sequence, so the
  covariance between taps i and j is g_i g_j σ² / (1 - p_i p_j). The direct
  path correlates with every tap through the current sample, the delayed
  path through the previous one.
  """
  p = PINK_POLES
  g = PINK_GAINS
  taps = np.sum(np.outer(g, g) / (1.0 - np.outer(p, p)))
  direct = PINK_DIRECT_GAIN**2 + 2.0 * PINK_DIRECT_GAIN * np.sum(g)
  delayed = PINK_DELAYED_GAIN**2 + 2.0 * PINK_DELAYED_GAIN * np.sum(g * p)
  total = (taps + direct + delayed) * _UNIFORM_PM1_VARIANCE
  return float(total * PINK_OUTPUT_SCALE**2)


class PinkNoiseGenerator:
  """Approximate 1/f noise from a bank of persistent first-order taps.

  Tap memory survives across calls for the lifetime of the instance. Only
  `reset()` clears it.
  """

  def __init__(self, rng: UniformSource | None = None, seed: int | None = None) -> None:
    self._rng = resolve_rng(rng, seed)
    self._taps = np.zeros(PINK_TAPS)

  @property
  def taps(self) -> npt.NDArray[np.float64]:
    """Copy of the current tap memory."""
    return self._taps.copy()

  def reset(self) -> None:
    """Zero all tap memory."""
    logger.debug("Pink noise taps reset")
    self._taps = np.zeros(PINK_TAPS)

  def generate(self, n: int) -> npt.NDArray[np.float64]:
    """Advance the generator by `n` samples and return them."""
    white = draw_uniform(self._rng, n) * 2.0 - 1.0
    out = PINK_DIRECT_GAIN * white

    for k, (pole, gain) in enumerate(zip(PINK_POLES, PINK_GAINS, strict=True)):
      # y[n] = pole * y[n-1] + gain * w[n], continued from the stored tap.
      tap, _ = scipy_signal.lfilter(
        [gain], [1.0, -pole], white, zi=[pole * self._taps[k]]
      )
      self._taps[k] = tap[-1]
      out += tap

    delayed = np.empty(n)
    delayed[0] = self._taps[-1]
    delayed[1:] = PINK_DELAYED_GAIN * white[:-1]
    self._taps[-1] = PINK_DELAYED_GAIN * white[-1]
    out += delayed

    return out * PINK_OUTPUT_SCALE

  def next(self) -> float:
    """Advance by one sample."""
    return float(self.generate(1)[0])


HUM_FREQ_VIZ = 50.0
HUM_AMPLITUDE = 0.05
SPIKE_PROBABILITY = 0.005
SPIKE_AMPLITUDE = 1.0


def interference_variance(intensity: float) -> float:
  """Variance of `InterferenceSource` output at the given intensity."""
  hum = np.square(HUM_AMPLITUDE * intensity) / 2.0
  spikes = SPIKE_PROBABILITY * np.square(SPIKE_AMPLITUDE * intensity) / 12.0
  return hum + spikes


class InterferenceSource:
  """Mains-style hum plus rare impulsive spikes."""

  def __init__(self, rng: UniformSource | None = None, seed: int | None = None) -> None:
    self._rng = resolve_rng(rng, seed)

  def generate(
    self, t: npt.NDArray[np.float64], intensity: float
  ) -> npt.NDArray[np.float64]:
    """Interference samples at the (visual) times `t`."""
    n = len(t)
    hum = HUM_AMPLITUDE * intensity * np.sin(2.0 * np.pi * HUM_FREQ_VIZ * t)
    fire = draw_uniform(self._rng, n) < SPIKE_PROBABILITY
    spikes = draw_centered(self._rng, n) * SPIKE_AMPLITUDE * intensity
    return hum + np.where(fire, spikes, 0.0)
