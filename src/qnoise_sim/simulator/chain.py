"""Transmission-line chain processing.

A stage is an ordered list of `ChainComponent`s. Gains are memoryless;
filters are RBJ-cookbook biquads whose Direct-Form-I history lives in a
`ChainProcessor`, keyed by component id, so it survives from one frame to
the next.
"""

import functools
import logging
from collections.abc import Iterable, Sequence
from typing import NamedTuple

import numpy as np
import numpy.typing as npt
from scipy import signal as scipy_signal

from qnoise_sim.config import ChainComponent, ComponentKind
from qnoise_sim.simulator.constants import SAMPLE_RATE, ghz_to_visual
from qnoise_sim.simulator.noise import UniformSource, draw_centered, resolve_rng

logger = logging.getLogger(__name__)

Q_FACTOR = 1.0 / np.sqrt(2.0)
AMP_NOISE_SCALE = 0.01
_MIN_CUTOFF_VIZ = 0.1
_MAX_CUTOFF_FRACTION = 0.999  # of Nyquist


def db_to_linear(db: float) -> float:
  """Amplitude ratio for a gain in dB; overflows to inf rather than raising."""
  return np.power(10.0, db / 20.0)


def component_gain_db(component: ChainComponent) -> float:
  """Static gain contributed by a component; filters count as 0 dB."""
  match component.kind:
    case ComponentKind.ATTENUATOR:
      return -component.value
    case ComponentKind.AMPLIFIER:
      return component.value
    case _:
      return 0.0


def chain_gain(components: Sequence[ChainComponent]) -> float:
  """Linear amplitude gain of a stage from its summed attenuation/gain in dB."""
  return db_to_linear(sum(component_gain_db(c) for c in components))


def amplifier_noise_std(gain_db: float) -> float:
  """Standard deviation of the uniform noise an amplifier adds."""
  return AMP_NOISE_SCALE * abs(gain_db / 10) / np.sqrt(12.0)


def chain_added_variance(components: Sequence[ChainComponent]) -> float:
  """Variance added by amplifiers, referred to the output of the stage."""
  variance = 0.0
  for component in components:
    gain_db = component_gain_db(component)
    if variance > 0:
      variance *= np.square(db_to_linear(gain_db))
    if component.kind is ComponentKind.AMPLIFIER:
      variance += np.square(amplifier_noise_std(component.value))
  return variance


class BiquadCoefficients(NamedTuple):
  """Second-order section normalized so that a0 = 1."""

  b0: float
  b1: float
  b2: float
  a1: float
  a2: float

  @property
  def b(self) -> tuple[float, float, float]:
    return (self.b0, self.b1, self.b2)

  @property
  def a(self) -> tuple[float, float, float]:
    return (1.0, self.a1, self.a2)


@functools.lru_cache(maxsize=256)
def design_biquad(kind: ComponentKind, cutoff_ghz: float) -> BiquadCoefficients:
  """RBJ cookbook coefficients for a filter component.

  The cutoff is mapped into the visual frequency domain and clamped inside
  (0, Nyquist) so that every design is stable.

  Raises:
    ValueError: If `kind` is not a filter.
  """
  nyquist = SAMPLE_RATE / 2
  f_viz = ghz_to_visual(cutoff_ghz)
  clamped = min(max(f_viz, _MIN_CUTOFF_VIZ), nyquist * _MAX_CUTOFF_FRACTION)
  if clamped != f_viz:
    logger.debug(f"{kind} cutoff {cutoff_ghz} GHz clamped to {clamped:.3f} (visual)")

  w0 = 2.0 * np.pi * clamped / SAMPLE_RATE
  cos_w0 = np.cos(w0)
  alpha = np.sin(w0) / (2.0 * Q_FACTOR)

  match kind:
    case ComponentKind.LOWPASS:
      b = ((1 - cos_w0) / 2, 1 - cos_w0, (1 - cos_w0) / 2)
    case ComponentKind.HIGHPASS:
      b = ((1 + cos_w0) / 2, -(1 + cos_w0), (1 + cos_w0) / 2)
    case ComponentKind.NOTCH:
      b = (1.0, -2 * cos_w0, 1.0)
    case _:
      msg = f"{kind} is not a filter component"
      raise ValueError(msg)

  a0 = 1 + alpha
  return BiquadCoefficients(
    b0=float(b[0] / a0),
    b1=float(b[1] / a0),
    b2=float(b[2] / a0),
    a1=float(-2 * cos_w0 / a0),
    a2=float((1 - alpha) / a0),
  )


class BiquadState:
  """Direct-Form-I history: the two previous inputs and outputs."""

  __slots__ = ("x1", "x2", "y1", "y2")

  def __init__(self) -> None:
    self.x1 = 0.0
    self.x2 = 0.0
    self.y1 = 0.0
    self.y2 = 0.0

  def step(self, x: float, coeffs: BiquadCoefficients) -> float:
    """Filter one sample."""
    y = (
      coeffs.b0 * x
      + coeffs.b1 * self.x1
      + coeffs.b2 * self.x2
      - coeffs.a1 * self.y1
      - coeffs.a2 * self.y2
    )
    self.x2, self.x1 = self.x1, x
    self.y2, self.y1 = self.y1, y
    return y

  def process(
    self, x: npt.NDArray[np.float64], coeffs: BiquadCoefficients
  ) -> npt.NDArray[np.float64]:
    """Filter a block; equivalent to calling `step` on every sample."""
    if len(x) == 0:
      return x

    zi = scipy_signal.lfiltic(
      coeffs.b, coeffs.a, y=[self.y1, self.y2], x=[self.x1, self.x2]
    )
    y, _ = scipy_signal.lfilter(coeffs.b, coeffs.a, x, zi=zi)

    if len(x) >= 2:
      self.x1, self.x2 = float(x[-1]), float(x[-2])
      self.y1, self.y2 = float(y[-1]), float(y[-2])
    else:
      self.x2, self.x1 = self.x1, float(x[0])
      self.y2, self.y1 = self.y1, float(y[0])
    return y

  def __repr__(self) -> str:
    return f"BiquadState(x1={self.x1}, x2={self.x2}, y1={self.y1}, y2={self.y2})"


class ChainProcessor:
  """Applies transmission-line stages and owns their filter memory.

  Filter state is created lazily for new component ids and dropped by
  `prune` once an id leaves the configuration.
  """

  def __init__(self, rng: UniformSource | None = None, seed: int | None = None) -> None:
    self._rng = resolve_rng(rng, seed)
    self._states: dict[str, BiquadState] = {}

  @property
  def ids(self) -> set[str]:
    """Ids that currently hold filter memory."""
    return set(self._states)

  def state(self, component_id: str) -> BiquadState:
    """Filter memory for `component_id`, created zeroed if absent."""
    if component_id not in self._states:
      self._states[component_id] = BiquadState()
    return self._states[component_id]

  def prune(self, active_ids: Iterable[str]) -> None:
    """Discard memory of components no longer in the configuration."""
    active = set(active_ids)
    stale = [cid for cid in self._states if cid not in active]
    for cid in stale:
      del self._states[cid]
    if stale:
      logger.debug(f"Pruned filter state for {stale}")

  def reset(self) -> None:
    self._states.clear()

  def process(
    self, signal: npt.NDArray[np.float64], components: Sequence[ChainComponent]
  ) -> npt.NDArray[np.float64]:
    """Run `signal` through `components` in order.

    Args:
      signal: Input samples.
      components: Ordered stage components.

    Returns:
      Processed samples (a new array).
    """
    s = np.array(signal, dtype=np.float64)

    for component in components:
      match component.kind:
        case ComponentKind.ATTENUATOR:
          s = s * db_to_linear(-component.value)
        case ComponentKind.AMPLIFIER:
          s = s * db_to_linear(component.value)
          s = s + draw_centered(self._rng, len(s)) * AMP_NOISE_SCALE * (
            component.value / 10
          )
        case ComponentKind.LOWPASS | ComponentKind.HIGHPASS | ComponentKind.NOTCH:
          coeffs = design_biquad(component.kind, component.value)
          s = self.state(component.id).process(s, coeffs)
        case ComponentKind.PASSTHROUGH:
          pass

    return s
