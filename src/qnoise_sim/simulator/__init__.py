"""Simulator module for the qubit control line."""

from qnoise_sim.simulator import presets
from qnoise_sim.simulator.chain import (
  BiquadCoefficients,
  BiquadState,
  ChainProcessor,
  chain_gain,
  design_biquad,
)
from qnoise_sim.simulator.coherence import (
  CoherenceEstimator,
  NoiseBudget,
  propagate_noise_variance,
  t2_star,
)
from qnoise_sim.simulator.constants import BUFFER_SIZE, DEPHASING_SCALE, SAMPLE_RATE
from qnoise_sim.simulator.engine import SimulationEngine, SimulationResult
from qnoise_sim.simulator.envelope import envelope
from qnoise_sim.simulator.metrics import (
  cascade_temperature,
  effective_noise_temperature,
  power_dbm,
  signal_power_dbm,
)
from qnoise_sim.simulator.noise import (
  InterferenceSource,
  PinkNoiseGenerator,
  UniformSource,
  WhiteNoiseGenerator,
)
from qnoise_sim.simulator.presets import ConfigPreset
from qnoise_sim.simulator.spectrum import SpectrumAnalyzer, SpectrumResult, fft_radix2
from qnoise_sim.simulator.stages import Stage
from qnoise_sim.simulator.synthesis import nco_iq, quantize, upconvert

__all__ = [
  # Constants
  "BUFFER_SIZE",
  "DEPHASING_SCALE",
  "SAMPLE_RATE",
  # Engine
  "SimulationEngine",
  "SimulationResult",
  "Stage",
  # Signal path
  "BiquadCoefficients",
  "BiquadState",
  "ChainProcessor",
  "chain_gain",
  "design_biquad",
  "envelope",
  "nco_iq",
  "quantize",
  "upconvert",
  # Noise
  "InterferenceSource",
  "PinkNoiseGenerator",
  "UniformSource",
  "WhiteNoiseGenerator",
  # Metrics and coherence
  "CoherenceEstimator",
  "NoiseBudget",
  "cascade_temperature",
  "effective_noise_temperature",
  "power_dbm",
  "propagate_noise_variance",
  "signal_power_dbm",
  "t2_star",
  # Spectrum
  "SpectrumAnalyzer",
  "SpectrumResult",
  "fft_radix2",
  # Presets
  "ConfigPreset",
  "presets",
]
