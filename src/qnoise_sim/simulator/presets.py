"""Standard library of pre-configured control lines.

Each factory returns a `SimulationConfig`; the module-level `ConfigPreset`
constants bundle a default instance with a name and description.

Typical Usage:
  ```python
  from qnoise_sim.simulator import SimulationEngine, presets

  engine = SimulationEngine(seed=1)
  frame = engine.simulate_frame(presets.hot_lines(room_temp=320.0), 0.0, "qubit")

  # Or look a preset up by name
  config = presets.get("ideal").config
  ```
"""

from pydantic import BaseModel

from qnoise_sim.config import (
  AWGParams,
  CableParams,
  ChainComponent,
  ComponentKind,
  DACParams,
  EnvelopeType,
  MixerParams,
  NoiseType,
  QubitParams,
  SimulationConfig,
  SourceParams,
)


class ConfigPreset(BaseModel):
  """A named configuration with metadata.

  Attributes:
    name: Human-readable preset name.
    description: What the preset demonstrates.
    config: The configuration itself.
  """

  name: str
  description: str
  config: SimulationConfig

  model_config = {"frozen": True}


def default() -> SimulationConfig:
  """Typical lab wiring: 3 dB at room temperature, 20 dB + 8 GHz low-pass cold."""
  return SimulationConfig()


def ideal(t1_us: float = 30.0, resolution: int = 16) -> SimulationConfig:
  """Noise-free line with unity-gain chains and full coupling.

  The noisy buffer at the qubit matches the ideal reference (up to
  quantization), and T2* sits at the 2*T1 ceiling.

  Args:
    t1_us: Qubit T1 in µs.
    resolution: DAC resolution in bits.
  """
  return SimulationConfig(
    source=SourceParams(envelope_type=EnvelopeType.CW),
    awg=AWGParams(phase_noise=0.0),
    dac=DACParams(resolution=resolution, sample_jitter=0.0),
    mixer=MixerParams(lo_leakage=0.0, iq_amp_imbalance=1.0, iq_phase_imbalance=0.0),
    cable_room=CableParams(temp=0.0, noise_intensity=0.0),
    cable_cryo=CableParams(temp=0.0, noise_intensity=0.0, flicker_noise=0.0),
    qubit=QubitParams(coupling=1.0, t1_us=t1_us),
  )


def hot_lines(room_temp: float = 300.0, cryo_temp: float = 4.0) -> SimulationConfig:
  """Poorly thermalized cryogenic line: attenuation sits at the 4 K plate.

  Args:
    room_temp: Room-temperature line temperature in K.
    cryo_temp: Physical temperature of the cryogenic attenuators in K.
  """
  return SimulationConfig(
    cable_room=CableParams(
      temp=room_temp,
      components=(ChainComponent(id="att1", kind=ComponentKind.ATTENUATOR, value=3.0),),
    ),
    cable_cryo=CableParams(
      temp=cryo_temp,
      flicker_noise=1.0,
      components=(
        ChainComponent(id="att2", kind=ComponentKind.ATTENUATOR, value=10.0),
        ChainComponent(id="lp1", kind=ComponentKind.LOWPASS, value=8.0),
      ),
    ),
  )


def noisy_lab(intensity: float = 1.0) -> SimulationConfig:
  """Mains hum and impulsive pickup on the room-temperature line.

  Args:
    intensity: Scale of both thermal noise and interference.
  """
  return SimulationConfig(
    cable_room=CableParams(
      temp=300.0,
      noise_type=NoiseType.INTERFERENCE,
      noise_intensity=intensity,
      components=(
        ChainComponent(id="amp1", kind=ComponentKind.AMPLIFIER, value=10.0),
        ChainComponent(id="att1", kind=ComponentKind.ATTENUATOR, value=13.0),
        ChainComponent(id="hp1", kind=ComponentKind.HIGHPASS, value=4.5),
      ),
    ),
  )


DEFAULT = ConfigPreset(
  name="Default",
  description="Typical wiring: 3 dB warm, 20 dB + 8 GHz low-pass at 20 mK",
  config=default(),
)

IDEAL = ConfigPreset(
  name="Ideal",
  description="No noise, no imbalance, unity gain; T2* limited by T1 only",
  config=ideal(),
)

HOT_LINES = ConfigPreset(
  name="Hot lines",
  description="Cryogenic attenuation thermalized at 4 K instead of 20 mK",
  config=hot_lines(),
)

NOISY_LAB = ConfigPreset(
  name="Noisy lab",
  description="Room-temperature amplifier with hum and impulsive interference",
  config=noisy_lab(),
)

_PRESETS = {
  "default": DEFAULT,
  "ideal": IDEAL,
  "hot_lines": HOT_LINES,
  "noisy_lab": NOISY_LAB,
}


def names() -> list[str]:
  return list(_PRESETS)


def get(name: str) -> ConfigPreset:
  """Look up a preset by name.

  Raises:
    KeyError: If no preset has that name.
  """
  try:
    return _PRESETS[name]
  except KeyError:
    msg = f"Unknown preset {name!r}; available: {', '.join(_PRESETS)}"
    raise KeyError(msg) from None
