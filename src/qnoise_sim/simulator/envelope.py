"""Pulse envelope generator.

All shapes are evaluated on sample positions inside one repetition period,
with the pulse centered at `PERIOD / 2`. Values are in [0, 1].
"""

import numpy as np
import numpy.typing as npt

from qnoise_sim.config import EnvelopeType, LibraryWindow, SourceParams
from qnoise_sim.simulator.constants import NS_TO_SAMPLES, PERIOD

_MIN_SIGMA = 1e-6

# General cosine coefficients: w(p) = sum_k (-1)^k a_k cos(2 pi k p)
WINDOW_COEFFICIENTS: dict[LibraryWindow, tuple[float, ...]] = {
  LibraryWindow.HANNING: (0.5, 0.5),
  LibraryWindow.HAMMING: (0.54, 0.46),
  LibraryWindow.BLACKMAN: (0.42, 0.5, 0.08),
}


def rectangular(
  rel_pos: npt.NDArray[np.float64],
  pulse_width: float,
  rise_time: float,
  center: float = PERIOD / 2,
) -> npt.NDArray[np.float64]:
  """Flat-top pulse with raised-cosine edges (widths in samples)."""
  half_width = pulse_width / 2
  dist = np.abs(rel_pos - center)
  env = np.where(dist <= half_width, 1.0, 0.0)
  if rise_time <= 0:
    return env

  ramp = (dist > half_width - rise_time) & (dist <= half_width)
  dist_from_edge = half_width - dist
  shaped = 0.5 * (1.0 - np.cos(np.pi * dist_from_edge / rise_time))
  return np.where(ramp, shaped, env)


def gaussian(
  rel_pos: npt.NDArray[np.float64],
  pulse_width: float,
  sigma: float,
  center: float = PERIOD / 2,
) -> npt.NDArray[np.float64]:
  """Gaussian truncated to the pulse width (widths in samples)."""
  sigma = max(sigma, _MIN_SIGMA)
  x = rel_pos - center
  env = np.exp(-(x * x) / (2.0 * sigma * sigma))
  return np.where(np.abs(x) <= pulse_width / 2, env, 0.0)


def library_window(
  rel_pos: npt.NDArray[np.float64],
  pulse_width: float,
  window: LibraryWindow,
  center: float = PERIOD / 2,
) -> npt.NDArray[np.float64]:
  """Named window stretched over the pulse width, zero outside it."""
  if pulse_width <= 0:
    return np.zeros_like(rel_pos, dtype=np.float64)

  p = (rel_pos - (center - pulse_width / 2)) / pulse_width
  env = np.zeros_like(p, dtype=np.float64)
  for k, a in enumerate(WINDOW_COEFFICIENTS[window]):
    env += (-1) ** k * a * np.cos(2.0 * np.pi * k * p)
  return np.where((p >= 0) & (p <= 1), env, 0.0)


def envelope(
  rel_pos: npt.NDArray[np.float64], params: SourceParams
) -> npt.NDArray[np.float64]:
  """Evaluate the configured envelope at positions within the period.

  Args:
    rel_pos: Sample positions in [0, PERIOD).
    params: Source parameters; widths are converted from ns to samples.

  Returns:
    Envelope values with the same shape as `rel_pos`.
  """
  rel_pos = np.asarray(rel_pos, dtype=np.float64)
  width = params.pulse_width * NS_TO_SAMPLES

  match params.envelope_type:
    case EnvelopeType.CW:
      return np.ones_like(rel_pos)
    case EnvelopeType.RECTANGULAR:
      return rectangular(rel_pos, width, params.rise_time * NS_TO_SAMPLES)
    case EnvelopeType.GAUSSIAN:
      return gaussian(rel_pos, width, params.sigma * NS_TO_SAMPLES)
    case EnvelopeType.WINDOW:
      return library_window(rel_pos, width, params.library_window)
