"""Engineering metrics: output signal power and cascaded noise temperature."""

import numpy as np

from qnoise_sim.config import SimulationConfig
from qnoise_sim.simulator.chain import chain_gain
from qnoise_sim.simulator.stages import Stage

IMPEDANCE_OHMS = 50.0
MIN_POWER_DBM = -140.0


def power_dbm(v_peak: float) -> float:
  """Power of a sinusoid with peak voltage `v_peak` into 50 Ω, in dBm.

  Floored at MIN_POWER_DBM so a silent line never yields -inf; an
  undefined (NaN) voltage also reports the floor.
  """
  v_rms = abs(v_peak) / np.sqrt(2.0)
  watts = np.square(v_rms) / IMPEDANCE_OHMS
  if not watts > 0:
    return MIN_POWER_DBM
  return max(float(10 * np.log10(watts) + 30), MIN_POWER_DBM)


def peak_voltage(config: SimulationConfig, stage: Stage) -> float:
  """Peak carrier voltage after every gain stage active at `stage`."""
  v = config.awg.amp
  if stage >= Stage.CABLE_ROOM:
    v *= chain_gain(config.cable_room.components)
  if stage >= Stage.CABLE_CRYO:
    v *= chain_gain(config.cable_cryo.components)
  if stage >= Stage.QUBIT:
    v *= config.qubit.coupling
  return v


def signal_power_dbm(config: SimulationConfig, stage: Stage) -> float:
  return power_dbm(peak_voltage(config, stage))


def cascade_temperature(t_in: float, gain: float, t_phys: float) -> float:
  """Noise temperature at the output of a stage.

  A lossy stage (G < 1) at physical temperature T_phys passes a fraction G
  of the incoming noise and emits the rest thermally:
  T_out = T_in G + T_phys (1 - G). A stage with net gain is treated as a
  noiseless amplifier, T_out = T_in G.
  """
  if gain < 1.0:
    return t_in * gain + t_phys * (1.0 - gain)
  return t_in * gain


def effective_noise_temperature(config: SimulationConfig, stage: Stage) -> float:
  """Noise temperature seen at `stage`, in kelvin.

  Noise enters the room-temperature line at that line's own temperature.
  Undefined (reported as zero) before the room-temperature stage; the qubit
  sees the cryogenic output.
  """
  if stage < Stage.CABLE_ROOM:
    return 0.0

  room = config.cable_room
  temp = cascade_temperature(room.temp, chain_gain(room.components), room.temp)
  if stage >= Stage.CABLE_CRYO:
    cryo = config.cable_cryo
    temp = cascade_temperature(temp, chain_gain(cryo.components), cryo.temp)
  return temp
