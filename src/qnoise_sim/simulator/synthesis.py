"""Digital synthesis, quantization and IQ upconversion."""

import numpy as np
import numpy.typing as npt

from qnoise_sim.config import MixerParams

PHASE_JITTER_SCALE = 5.0
# Finer grids are below float64 resolution for full-scale samples.
MAX_RESOLUTION_BITS = 52

FloatArray = npt.NDArray[np.float64]


def phase_jitter_width(phase_noise: float) -> float:
  """Peak-to-peak width of the uniform NCO phase jitter."""
  return PHASE_JITTER_SCALE * phase_noise


def nco_iq(
  t: FloatArray,
  env: FloatArray,
  amp: float,
  freq_viz: float,
  phase: float,
  phase_error: FloatArray | float = 0.0,
) -> tuple[FloatArray, FloatArray]:
  """Baseband I/Q from the numerically controlled oscillator.

  Args:
    t: Sample times (visual units).
    env: Envelope per sample.
    amp: Output amplitude.
    freq_viz: NCO frequency in the visual domain.
    phase: Static carrier phase.
    phase_error: Per-sample phase perturbation (jitter), in radians.

  Returns:
    (I, Q) arrays.
  """
  theta = 2.0 * np.pi * freq_viz * t + phase + phase_error
  a = amp * env
  return a * np.cos(theta), a * np.sin(theta)


def effective_bits(resolution: int) -> int:
  """Resolution clamped to the range a float64 grid can represent."""
  return min(max(int(resolution), 1), MAX_RESOLUTION_BITS)


def quantize(values: FloatArray, resolution: int) -> FloatArray:
  """Round to a 2^-N grid, with N clamped by `effective_bits`."""
  levels = 2.0 ** effective_bits(resolution)
  return np.round(values * levels) / levels


def quantization_step(resolution: int) -> float:
  return 2.0 ** -effective_bits(resolution)


def upconvert(
  i: FloatArray, q: FloatArray, t: FloatArray, lo_viz: float, mixer: MixerParams
) -> FloatArray:
  """Image-reject mixer with amplitude/phase imbalance and LO leakage.

  V_RF = (I * gamma) cos(w t) - Q sin(w t + theta) + V_leak cos(w t)
  """
  wt = 2.0 * np.pi * lo_viz * t
  lo_i = np.cos(wt)
  lo_q = np.sin(wt + mixer.iq_phase_imbalance)
  return (i * mixer.iq_amp_imbalance) * lo_i - q * lo_q + mixer.lo_leakage * lo_i
