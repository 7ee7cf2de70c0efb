"""Observation stages of the control line."""

from enum import IntEnum


class Stage(IntEnum):
  """Ordered pipeline stages.

  Observing stage N applies every stage up to and including N, in this
  order:
  0. SOURCE: ideal pulse at the target frequency
  1. AWG: NCO I/Q synthesis with phase jitter
  2. DAC: quantization and clock jitter
  3. MIXER: IQ upconversion
  4. CABLE_ROOM: room-temperature line
  5. CABLE_CRYO: cryogenic line with 1/f noise
  6. QUBIT: coupling into the qubit
  """

  SOURCE = 0
  AWG = 1
  DAC = 2
  MIXER = 3
  CABLE_ROOM = 4
  CABLE_CRYO = 5
  QUBIT = 6

  @property
  def key(self) -> str:
    """Configuration section id, e.g. "cable_room"."""
    return self.name.lower()

  @classmethod
  def parse(cls, value: "Stage | int | str") -> "Stage":
    """Accept a Stage, its index, or its section id.

    Raises:
      ValueError: If `value` names no stage.
    """
    if isinstance(value, str):
      try:
        return cls[value.strip().upper()]
      except KeyError:
        msg = f"Unknown stage {value!r}; expected one of {[s.key for s in cls]}"
        raise ValueError(msg) from None
    return cls(value)
