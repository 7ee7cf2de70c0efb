"""Tests for the configuration module."""

import json

import pytest
from pydantic import ValidationError

from qnoise_sim.config import (
  CableParams,
  ChainComponent,
  ComponentKind,
  EnvelopeType,
  SimulationConfig,
  load_config,
  update_components,
  update_param,
)


class TestDefaults:
  """Tests for default configuration values."""

  def test_config_defaults(self) -> None:
    """Test that defaults reproduce the standard lab wiring."""
    config = SimulationConfig()
    assert config.source.envelope_type == EnvelopeType.RECTANGULAR
    assert config.dac.resolution == 12
    assert config.cable_room.temp == 300.0
    assert [c.id for c in config.cable_cryo.components] == ["att2", "lp1"]
    assert config.qubit.t1_us == 30.0

  def test_config_is_frozen(self) -> None:
    """Test that a configuration cannot be mutated in place."""
    config = SimulationConfig()
    with pytest.raises(ValidationError):
      config.qubit.coupling = 0.5  # type: ignore[misc]

  def test_component_ids(self) -> None:
    """Test that ids are collected from both lines."""
    assert SimulationConfig().component_ids() == {"att1", "att2", "lp1"}


class TestValidation:
  """Tests for field constraints."""

  def test_coupling_out_of_range(self) -> None:
    """Test that coupling above one is rejected."""
    with pytest.raises(ValidationError):
      update_param(SimulationConfig(), "qubit", "coupling", 1.5)

  def test_negative_temperature(self) -> None:
    """Test that negative temperatures are rejected."""
    with pytest.raises(ValidationError):
      CableParams(temp=-1.0)

  @pytest.mark.parametrize(
    ("section", "key"),
    [
      ("awg", "amp"),
      ("awg", "phase_noise"),
      ("cable_room", "temp"),
      ("qubit", "t1_us"),
    ],
  )
  @pytest.mark.parametrize("value", [float("inf"), float("nan")])
  def test_non_finite_values(self, section, key, value) -> None:
    """Test that inf and NaN are rejected like other out-of-range values."""
    with pytest.raises(ValidationError):
      update_param(SimulationConfig(), section, key, value)

  def test_non_finite_component_value(self) -> None:
    """Test that a component cannot carry an infinite gain."""
    with pytest.raises(ValidationError):
      ChainComponent(id="g", kind=ComponentKind.AMPLIFIER, value=float("inf"))

  def test_duplicate_ids_in_stage(self) -> None:
    """Test that a stage cannot reuse a component id."""
    with pytest.raises(ValidationError):
      CableParams(
        temp=300.0,
        components=(
          ChainComponent(id="a", kind=ComponentKind.ATTENUATOR, value=3),
          ChainComponent(id="a", kind=ComponentKind.AMPLIFIER, value=3),
        ),
      )

  def test_ids_shared_between_stages(self) -> None:
    """Test that the two lines cannot share a component id."""
    component = ChainComponent(id="x", kind=ComponentKind.ATTENUATOR, value=1)
    with pytest.raises(ValidationError):
      SimulationConfig(
        cable_room=CableParams(temp=300.0, components=(component,)),
        cable_cryo=CableParams(temp=0.02, components=(component,)),
      )


class TestComponentKind:
  """Tests for component kind parsing."""

  @pytest.mark.parametrize(
    ("raw", "expected"),
    [
      ("lowpass", ComponentKind.LOWPASS),
      ("low-pass", ComponentKind.LOWPASS),
      ("High_Pass", ComponentKind.HIGHPASS),
      ("NOTCH", ComponentKind.NOTCH),
    ],
  )
  def test_spellings(self, raw, expected) -> None:
    """Test that common spellings map onto the canonical kinds."""
    assert ChainComponent(id="c", kind=raw).kind is expected

  def test_unknown_kind_is_passthrough(self) -> None:
    """Test that an unknown kind validates as a pass-through."""
    component = ChainComponent(id="c", kind="circulator", value=2.0)
    assert component.kind is ComponentKind.PASSTHROUGH
    assert not component.kind.is_filter


class TestUpdates:
  """Tests for copy-on-write updates."""

  def test_update_param_returns_copy(self) -> None:
    """Test that update_param leaves the original untouched."""
    config = SimulationConfig()
    updated = update_param(config, "awg", "phase_noise", 0.1)
    assert updated.awg.phase_noise == 0.1
    assert config.awg.phase_noise == 0.005

  def test_update_param_unknown_key(self) -> None:
    """Test that unknown fields raise KeyError."""
    with pytest.raises(KeyError):
      update_param(SimulationConfig(), "awg", "volume", 1.0)

  def test_update_components(self) -> None:
    """Test replacing a stage's component list."""
    components = [ChainComponent(id="amp9", kind=ComponentKind.AMPLIFIER, value=6.0)]
    updated = update_components(SimulationConfig(), "cable_room", components)
    assert [c.id for c in updated.cable_room.components] == ["amp9"]
    assert updated.cable_cryo == SimulationConfig().cable_cryo


def test_load_config(tmp_path) -> None:
  """Test loading a partial JSON configuration."""
  path = tmp_path / "config.json"
  path.write_text(
    json.dumps(
      {
        "qubit": {"coupling": 0.5},
        "cable_room": {
          "temp": 290,
          "components": [{"id": "f1", "kind": "notch", "value": 6.0}],
        },
      }
    )
  )
  config = load_config(path)
  assert config.qubit.coupling == 0.5
  assert config.cable_room.components[0].kind is ComponentKind.NOTCH
  assert config.awg == SimulationConfig().awg
