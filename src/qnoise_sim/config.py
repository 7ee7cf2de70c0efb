"""Configuration models for the control-line simulation.

A `SimulationConfig` is an immutable snapshot of every knob of the signal
path, grouped in the same seven sections as the pipeline itself. Controllers
never mutate a config in place: `update_param` and `update_components` return
a fresh, validated copy.
"""

import logging
from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

Section = Literal[
  "source", "awg", "dac", "mixer", "cable_room", "cable_cryo", "qubit"
]


class EnvelopeType(StrEnum):
  """Pulse envelope families."""

  CW = "cw"
  RECTANGULAR = "rectangular"
  GAUSSIAN = "gaussian"
  WINDOW = "window"


class LibraryWindow(StrEnum):
  """Window functions available as pulse envelopes."""

  HANNING = "hanning"
  HAMMING = "hamming"
  BLACKMAN = "blackman"


class NoiseType(StrEnum):
  """Noise model injected by a transmission-line stage."""

  THERMAL = "thermal"
  INTERFERENCE = "interference"


class ComponentKind(StrEnum):
  """Kinds of transmission-line components.

  Any unrecognized kind maps to PASSTHROUGH, which leaves the signal
  untouched.
  """

  ATTENUATOR = "attenuator"
  AMPLIFIER = "amplifier"
  LOWPASS = "lowpass"
  HIGHPASS = "highpass"
  NOTCH = "notch"
  PASSTHROUGH = "passthrough"

  @classmethod
  def _missing_(cls, value: object) -> "ComponentKind":
    # Accept spellings such as "low-pass" or "High_Pass".
    normalized = "".join(ch for ch in str(value).lower() if ch.isalnum())
    for member in cls:
      if member.value == normalized:
        return member
    logger.warning(f"Unknown component kind {value!r}, treating as passthrough")
    return cls.PASSTHROUGH

  @property
  def is_filter(self) -> bool:
    return self in (ComponentKind.LOWPASS, ComponentKind.HIGHPASS, ComponentKind.NOTCH)


class ChainComponent(BaseModel):
  """A single element of a transmission-line stage.

  Attributes:
    id: Stable identifier; filter memory is keyed on it.
    kind: Component kind.
    value: Loss/gain in dB for attenuators and amplifiers, cutoff or center
      frequency in GHz for filters.
  """

  id: str = Field(..., min_length=1)
  kind: ComponentKind
  value: float = 0.0

  model_config = {"frozen": True, "allow_inf_nan": False}

  @field_validator("kind", mode="before")
  @classmethod
  def _coerce_kind(cls, value: Any) -> ComponentKind:
    if isinstance(value, ComponentKind):
      return value
    return ComponentKind(str(value))


class SourceParams(BaseModel):
  """Ideal pulse definition (planning layer).

  Widths are in ns where 100 ns spans the whole sample buffer.
  """

  target_freq: float = Field(6.2, description="Target qubit frequency in GHz.")
  envelope_type: EnvelopeType = EnvelopeType.RECTANGULAR
  pulse_width: float = Field(50.0, ge=0.0, description="Total pulse duration (ns).")
  rise_time: float = Field(5.0, ge=0.0, description="Cosine ramp duration (ns).")
  sigma: float = Field(10.0, ge=0.0, description="Gaussian sigma (ns).")
  library_window: LibraryWindow = LibraryWindow.HANNING

  model_config = {"frozen": True, "allow_inf_nan": False}


class AWGParams(BaseModel):
  """Arbitrary waveform generator / NCO settings."""

  nco_freq: float = Field(0.2, description="Digital IF offset in GHz.")
  amp: float = Field(1.0, ge=0.0, description="Output amplitude in volts.")
  phase: float = Field(0.0, description="Carrier phase in radians.")
  phase_noise: float = Field(0.005, ge=0.0, description="Phase jitter magnitude.")

  model_config = {"frozen": True, "allow_inf_nan": False}


class DACParams(BaseModel):
  """DAC settings. Resolutions below one bit are clamped at use."""

  resolution: int = Field(12, description="Resolution in bits.")
  sample_jitter: float = Field(
    0.01, ge=0.0, description="Clock jitter in sample periods (peak-to-peak)."
  )

  model_config = {"frozen": True, "allow_inf_nan": False}


class MixerParams(BaseModel):
  """IQ mixer settings."""

  lo_freq: float = Field(6.0, description="Local oscillator frequency in GHz.")
  lo_leakage: float = Field(0.02, description="LO feed-through amplitude in volts.")
  iq_amp_imbalance: float = Field(1.0, description="I/Q amplitude ratio.")
  iq_phase_imbalance: float = Field(0.0, description="Quadrature error in radians.")

  model_config = {"frozen": True, "allow_inf_nan": False}


class CableParams(BaseModel):
  """A transmission-line stage at a single physical temperature."""

  temp: float = Field(..., ge=0.0, description="Physical temperature in kelvin.")
  noise_type: NoiseType = NoiseType.THERMAL
  noise_intensity: float = Field(1.0, ge=0.0)
  flicker_noise: float = Field(0.0, ge=0.0, description="1/f noise magnitude.")
  components: tuple[ChainComponent, ...] = ()

  model_config = {"frozen": True, "allow_inf_nan": False}

  @field_validator("components")
  @classmethod
  def _unique_ids(
    cls, components: tuple[ChainComponent, ...]
  ) -> tuple[ChainComponent, ...]:
    ids = [c.id for c in components]
    if len(ids) != len(set(ids)):
      msg = f"Duplicate component ids in stage: {ids}"
      raise ValueError(msg)
    return components


class QubitParams(BaseModel):
  """Qubit coupling and intrinsic relaxation."""

  coupling: float = Field(0.9, ge=0.0, le=1.0)
  t1_us: float = Field(30.0, gt=0.0, description="T1 relaxation time (µs).")

  model_config = {"frozen": True, "allow_inf_nan": False}


def _default_room() -> CableParams:
  return CableParams(
    temp=300.0,
    components=(ChainComponent(id="att1", kind=ComponentKind.ATTENUATOR, value=3.0),),
  )


def _default_cryo() -> CableParams:
  return CableParams(
    temp=0.02,
    flicker_noise=0.5,
    components=(
      ChainComponent(id="att2", kind=ComponentKind.ATTENUATOR, value=20.0),
      ChainComponent(id="lp1", kind=ComponentKind.LOWPASS, value=8.0),
    ),
  )


class SimulationConfig(BaseModel):
  """Complete configuration of the control line.

  Attributes:
    source: Ideal pulse definition.
    awg: Digital synthesis.
    dac: Quantization.
    mixer: Upconversion.
    cable_room: Room-temperature line.
    cable_cryo: Cryogenic line.
    qubit: Qubit coupling and T1.
  """

  source: SourceParams = Field(default_factory=SourceParams)
  awg: AWGParams = Field(default_factory=AWGParams)
  dac: DACParams = Field(default_factory=DACParams)
  mixer: MixerParams = Field(default_factory=MixerParams)
  cable_room: CableParams = Field(default_factory=_default_room)
  cable_cryo: CableParams = Field(default_factory=_default_cryo)
  qubit: QubitParams = Field(default_factory=QubitParams)

  model_config = {"frozen": True, "allow_inf_nan": False}

  @model_validator(mode="after")
  def _ids_unique_across_stages(self) -> "SimulationConfig":
    room = {c.id for c in self.cable_room.components}
    shared = room.intersection(c.id for c in self.cable_cryo.components)
    if shared:
      msg = f"Component ids shared between stages: {sorted(shared)}"
      raise ValueError(msg)
    return self

  def component_ids(self) -> set[str]:
    """Ids of every chain component in both transmission-line stages."""
    return {
      c.id
      for stage in (self.cable_room, self.cable_cryo)
      for c in stage.components
    }


def update_param(
  config: SimulationConfig, section: Section, key: str, value: Any
) -> SimulationConfig:
  """Return a copy of `config` with one scalar field replaced.

  Raises:
    ValidationError: If the new value violates a field constraint.
    KeyError: If `key` is not a field of the section.
  """
  data = config.model_dump()
  if key not in data[section]:
    msg = f"{section} has no field {key!r}"
    raise KeyError(msg)
  data[section][key] = value
  return SimulationConfig.model_validate(data)


def update_components(
  config: SimulationConfig,
  section: Literal["cable_room", "cable_cryo"],
  components: Sequence[ChainComponent],
) -> SimulationConfig:
  """Return a copy of `config` with a stage's component list replaced."""
  data = config.model_dump()
  data[section]["components"] = [c.model_dump() for c in components]
  return SimulationConfig.model_validate(data)


def load_config(path: Path) -> SimulationConfig:
  """Load a configuration from a JSON file; missing sections take defaults."""
  return SimulationConfig.model_validate_json(Path(path).read_text())
