"""Frame-by-frame simulation of the qubit control line.

The engine turns a configuration, a time offset and an observation stage
into one frame: an ideal reference buffer, the degraded buffer seen at the
chosen stage, and the derived metrics. Everything mutable between frames
(filter memory, pink noise taps, the T2* average and the random stream) is
held by objects the caller can construct and pass in, so independent
engines never share state.
"""

import logging

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel

from qnoise_sim.config import CableParams, NoiseType, SimulationConfig
from qnoise_sim.simulator.chain import ChainProcessor, chain_gain
from qnoise_sim.simulator.coherence import CoherenceEstimator, flicker_gain, thermal_std
from qnoise_sim.simulator.constants import (
  BUFFER_SIZE,
  PERIOD,
  SAMPLE_RATE,
  ghz_to_visual,
  offset_to_visual,
)
from qnoise_sim.simulator.envelope import envelope
from qnoise_sim.simulator.metrics import (
  MIN_POWER_DBM,
  effective_noise_temperature,
  signal_power_dbm,
)
from qnoise_sim.simulator.noise import (
  InterferenceSource,
  PinkNoiseGenerator,
  UniformSource,
  WhiteNoiseGenerator,
  draw_centered,
  resolve_rng,
)
from qnoise_sim.simulator.stages import Stage
from qnoise_sim.simulator.synthesis import (
  nco_iq,
  phase_jitter_width,
  quantize,
  upconvert,
)

logger = logging.getLogger(__name__)

DISPLAY_HEADROOM = 1.5
MIN_DISPLAY_AMPLITUDE = 0.05


class SimulationResult(BaseModel):
  """Output of a single frame.

  Attributes:
    ideal_buffer: Noise-free reference at the qubit, whatever the stage.
    noisy_buffer: Actual signal at the observed stage.
    max_amplitude: Display scale for both buffers.
    estimated_t2: Smoothed T2* in µs.
    signal_power_dbm: Carrier power at the observed stage.
    effective_noise_temp: Cascaded noise temperature at the observed stage (K).
    stage: The observed stage.
  """

  ideal_buffer: np.ndarray
  noisy_buffer: np.ndarray
  max_amplitude: float
  estimated_t2: float
  signal_power_dbm: float
  effective_noise_temp: float
  stage: Stage

  model_config = {"frozen": True, "arbitrary_types_allowed": True}


def display_amplitude(config: SimulationConfig, stage: Stage) -> float:
  """Vertical scale for plotting a frame observed at `stage`."""
  amp = config.awg.amp * DISPLAY_HEADROOM
  if stage >= Stage.CABLE_ROOM:
    amp *= chain_gain(config.cable_room.components)
  if stage >= Stage.CABLE_CRYO:
    amp *= chain_gain(config.cable_cryo.components)
  return max(amp, MIN_DISPLAY_AMPLITUDE)


class SimulationEngine:
  """Computes simulation frames.

  Frames must not be computed concurrently on one engine: filter memory and
  pink noise taps advance in place.
  """

  def __init__(
    self,
    rng: UniformSource | None = None,
    seed: int | None = None,
    pink: PinkNoiseGenerator | None = None,
    chains: ChainProcessor | None = None,
    coherence: CoherenceEstimator | None = None,
  ) -> None:
    """Initialize the engine.

    Args:
      rng: Uniform source for every random draw the engine makes itself.
      seed: Seed for a fresh numpy Generator when `rng` is not given.
      pink: 1/f generator; created on the engine stream if omitted.
      chains: Owner of transmission-line filter memory.
      coherence: T2* estimator holding the smoothed average.
    """
    self._rng = resolve_rng(rng, seed)
    self.white = WhiteNoiseGenerator(self._rng)
    self.interference = InterferenceSource(self._rng)
    self.pink = pink if pink is not None else PinkNoiseGenerator(self._rng)
    self.chains = chains if chains is not None else ChainProcessor(self._rng)
    self.coherence = coherence if coherence is not None else CoherenceEstimator()
    self._index = np.arange(BUFFER_SIZE)

  def simulate_frame(
    self,
    config: SimulationConfig,
    time_offset: float,
    stage: Stage | int | str = Stage.QUBIT,
  ) -> SimulationResult:
    """Compute one frame.

    Args:
      config: Configuration, treated as read-only.
      time_offset: Elapsed time in samples (ns-equivalent units).
      stage: Observation cursor; every stage up to it is applied.

    Returns:
      Buffers of exactly BUFFER_SIZE samples plus metrics.
    """
    stage = Stage.parse(stage)
    self.chains.prune(config.component_ids())

    try:
      ideal, noisy = self._compute_buffers(config, float(time_offset), stage)
    except (ArithmeticError, ValueError):
      logger.exception(f"Frame at t={time_offset} failed; returning a flat frame")
      ideal = np.zeros(BUFFER_SIZE)
      noisy = np.zeros(BUFFER_SIZE)

    if not (np.all(np.isfinite(ideal)) and np.all(np.isfinite(noisy))):
      # Filter memory fed with inf/NaN would poison every later frame.
      logger.warning("Non-finite samples in frame replaced with zero")
      self.chains.reset()
      ideal = np.nan_to_num(ideal, nan=0.0, posinf=0.0, neginf=0.0)
      noisy = np.nan_to_num(noisy, nan=0.0, posinf=0.0, neginf=0.0)

    max_amplitude, t2, power, noise_temp = self._frame_metrics(config, stage)
    return SimulationResult(
      ideal_buffer=ideal,
      noisy_buffer=noisy,
      max_amplitude=max_amplitude,
      estimated_t2=t2,
      signal_power_dbm=power,
      effective_noise_temp=noise_temp,
      stage=stage,
    )

  def _frame_metrics(
    self, config: SimulationConfig, stage: Stage
  ) -> tuple[float, float, float, float]:
    """Display scale, smoothed T2*, signal power and noise temperature."""
    try:
      return (
        display_amplitude(config, stage),
        self.coherence.update(config),
        signal_power_dbm(config, stage),
        effective_noise_temperature(config, stage),
      )
    except (ArithmeticError, ValueError):
      logger.exception("Frame metrics failed; reporting floor values")
      previous = self.coherence.smoothed
      return (
        MIN_DISPLAY_AMPLITUDE,
        0.0 if previous is None else previous,
        MIN_POWER_DBM,
        0.0,
      )

  def _compute_buffers(
    self, config: SimulationConfig, time_offset: float, stage: Stage
  ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    n = BUFFER_SIZE
    t = (time_offset + self._index) / SAMPLE_RATE
    env = envelope(self._index % PERIOD, config.source)

    awg = config.awg
    lo_viz = ghz_to_visual(config.mixer.lo_freq)
    nco_viz = offset_to_visual(awg.nco_freq)
    carrier_viz = lo_viz + nco_viz

    ideal_gain = (
      chain_gain(config.cable_room.components)
      * chain_gain(config.cable_cryo.components)
      * config.qubit.coupling
    )
    ideal = awg.amp * ideal_gain * env * np.cos(2 * np.pi * carrier_viz * t + awg.phase)

    if stage == Stage.SOURCE:
      target_viz = ghz_to_visual(config.source.target_freq)
      return ideal, awg.amp * env * np.cos(2 * np.pi * target_viz * t + awg.phase)

    # Fresh jitter for every sample of every frame.
    phase_error = draw_centered(self._rng, n) * phase_jitter_width(awg.phase_noise)
    if stage >= Stage.DAC:
      clock_offset = draw_centered(self._rng, n) * config.dac.sample_jitter
      phase_error = phase_error + 2 * np.pi * nco_viz * clock_offset / SAMPLE_RATE

    i_bb, q_bb = nco_iq(t, env, awg.amp, nco_viz, awg.phase, phase_error)
    signal = i_bb

    if stage >= Stage.DAC:
      i_bb = quantize(i_bb, config.dac.resolution)
      q_bb = quantize(q_bb, config.dac.resolution)
      signal = i_bb

    if stage >= Stage.MIXER:
      signal = upconvert(i_bb, q_bb, t, lo_viz, config.mixer)

    if stage >= Stage.CABLE_ROOM:
      signal = self._transmission_line(signal, t, config.cable_room, interference=True)

    if stage >= Stage.CABLE_CRYO:
      signal = self._transmission_line(signal, t, config.cable_cryo, interference=False)

    if stage >= Stage.QUBIT:
      signal = signal * config.qubit.coupling

    return ideal, signal

  def _transmission_line(
    self,
    signal: npt.NDArray[np.float64],
    t: npt.NDArray[np.float64],
    cable: CableParams,
    interference: bool,
  ) -> npt.NDArray[np.float64]:
    """Chain components followed by the noise the line injects."""
    s = self.chains.process(signal, cable.components)

    std = thermal_std(cable)
    if std > 0:
      s = s + std * self.white.generate(len(s))

    if interference and cable.noise_type is NoiseType.INTERFERENCE:
      s = s + self.interference.generate(t, cable.noise_intensity)

    if cable.flicker_noise > 0:
      s = s + flicker_gain(cable) * self.pink.generate(len(s))

    return s
