"""Frequency-domain view of a simulated buffer.

Blackman-Harris analysis window followed by an iterative radix-2 FFT
(bit-reversal permutation, then log2(N) butterfly stages, each vectorized
over all blocks of the stage).
"""

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel
from scipy import signal as scipy_signal

from qnoise_sim.simulator.constants import (
  BUFFER_SIZE,
  SAMPLE_RATE,
  ghz_to_visual,
  visual_to_ghz,
)

DB_EPSILON = 1e-9


def _check_power_of_two(n: int) -> None:
  if n < 1 or n & (n - 1):
    msg = f"Radix-2 FFT needs a power-of-two length, got {n}"
    raise ValueError(msg)


def bit_reverse_indices(n: int) -> npt.NDArray[np.intp]:
  """Permutation that reorders `n` inputs into bit-reversed index order."""
  _check_power_of_two(n)
  bits = n.bit_length() - 1
  idx = np.arange(n)
  rev = np.zeros(n, dtype=np.intp)
  for b in range(bits):
    rev |= ((idx >> b) & 1) << (bits - 1 - b)
  return rev


def fft_radix2(
  x: npt.ArrayLike, permutation: npt.NDArray[np.intp] | None = None
) -> npt.NDArray[np.complex128]:
  """Decimation-in-time FFT of a power-of-two length sequence.

  Args:
    x: Input samples.
    permutation: Precomputed `bit_reverse_indices(len(x))`, if available.

  Returns:
    The unnormalized DFT of `x`.
  """
  a = np.asarray(x, dtype=np.complex128)
  n = len(a)
  if permutation is None:
    permutation = bit_reverse_indices(n)
  a = a[permutation]

  size = 2
  while size <= n:
    half = size // 2
    twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
    blocks = a.reshape(-1, size)
    even = blocks[:, :half]
    odd = blocks[:, half:] * twiddle
    a = np.concatenate((even + odd, even - odd), axis=1).reshape(n)
    size *= 2

  return a


class SpectrumResult(BaseModel):
  """One-sided magnitude spectrum.

  Attributes:
    magnitudes: |X_k| / N for k < N/2.
    frequencies_ghz: Bin centers mapped back to GHz.
    carrier_bin: Fractional bin of the requested center frequency.
  """

  magnitudes: np.ndarray
  frequencies_ghz: np.ndarray
  carrier_bin: float

  model_config = {"frozen": True, "arbitrary_types_allowed": True}

  @property
  def peak_bin(self) -> int:
    return int(np.argmax(self.magnitudes))

  def magnitudes_db(self) -> npt.NDArray[np.float64]:
    """Magnitudes in dB, with an epsilon so empty bins stay finite."""
    return 20 * np.log10(self.magnitudes + DB_EPSILON)


class SpectrumAnalyzer:
  """Windowed FFT for buffers of a fixed length."""

  def __init__(self, size: int = BUFFER_SIZE) -> None:
    _check_power_of_two(size)
    self.size = size
    self.window = scipy_signal.windows.blackmanharris(size, sym=True)
    self._permutation = bit_reverse_indices(size)
    self.bin_width = SAMPLE_RATE / size

  def magnitudes(self, buffer: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalized one-sided magnitudes of the windowed buffer.

    Raises:
      ValueError: If the buffer length differs from the analyzer size.
    """
    samples = np.asarray(buffer, dtype=np.float64)
    if samples.shape != (self.size,):
      msg = f"Expected a buffer of {self.size} samples, got shape {samples.shape}"
      raise ValueError(msg)

    spectrum = fft_radix2(samples * self.window, self._permutation)
    return np.abs(spectrum[: self.size // 2]) / self.size

  def analyze(self, buffer: npt.ArrayLike, center_freq_ghz: float) -> SpectrumResult:
    """Spectrum of `buffer` with the carrier marker at `center_freq_ghz`."""
    bins = np.arange(self.size // 2)
    return SpectrumResult(
      magnitudes=self.magnitudes(buffer),
      frequencies_ghz=np.asarray(visual_to_ghz(bins * self.bin_width)),
      carrier_bin=ghz_to_visual(center_freq_ghz) / self.bin_width,
    )
