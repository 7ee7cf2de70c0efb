"""Fixed simulation constants and the GHz-to-visual frequency map.

Physical frequencies (GHz) are far too high to sample directly, so the engine
works in a scaled "visual" domain where 4 GHz lands at 20 Hz and every GHz
adds 20 Hz. NCO offsets are already relative and only get the 20x scale.
"""

import numpy as np

SAMPLE_RATE = 4000  # visual samples per unit time
BUFFER_SIZE = 1024  # must stay a power of two for the radix-2 FFT
PERIOD = BUFFER_SIZE // 2  # pulse repetition window in samples
NS_TO_SAMPLES = BUFFER_SIZE / 100  # 100 ns spans the whole buffer

# Empirical conversion from accumulated noise variance (V^2) to dephasing
# rate in 1/µs.
DEPHASING_SCALE = 1000.0

VISUAL_BASE_GHZ = 4.0
VISUAL_OFFSET_HZ = 20.0
VISUAL_HZ_PER_GHZ = 20.0

BIN_WIDTH_HZ = SAMPLE_RATE / BUFFER_SIZE


def ghz_to_visual(freq_ghz: float) -> float:
  """Map an absolute frequency in GHz to the visual domain."""
  return VISUAL_OFFSET_HZ + (freq_ghz - VISUAL_BASE_GHZ) * VISUAL_HZ_PER_GHZ


def offset_to_visual(offset_ghz: float) -> float:
  """Map a relative (IF) frequency offset in GHz to the visual domain."""
  return offset_ghz * VISUAL_HZ_PER_GHZ


def visual_to_ghz(freq_viz: float | np.ndarray) -> float | np.ndarray:
  """Inverse of `ghz_to_visual`."""
  return VISUAL_BASE_GHZ + (freq_viz - VISUAL_OFFSET_HZ) / VISUAL_HZ_PER_GHZ
