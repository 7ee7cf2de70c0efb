#!/usr/bin/env python3
"""Qubit Control-Line Simulation Script.

This script plays the role of the animation loop: it advances a time
accumulator, asks the engine for a frame every tick, and periodically logs
the engineering metrics and the strongest spectral line.

Pausing is emulated with --pause-after: from that tick on the clock stops,
and the frozen timestamp is recomputed once with a slightly perturbed
configuration, just as a UI would after a slider change.
"""

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from qnoise_sim.config import SimulationConfig, load_config, update_param
from qnoise_sim.setup_logging import setup_logging
from qnoise_sim.simulator import SimulationEngine, SpectrumAnalyzer, Stage, presets

logger = logging.getLogger(__name__)

TIME_STEP = 5.0  # samples per tick at speed 1.0


def get_config(config_file: Path | None, preset_name: str) -> SimulationConfig:
  """Load the configuration from a JSON file or a named preset."""
  if config_file is not None:
    try:
      return load_config(config_file)
    except (OSError, ValidationError):
      logger.exception(f"Error reading configuration {config_file}")
      sys.exit(1)

  try:
    preset = presets.get(preset_name)
  except KeyError as exc:
    logger.error(exc.args[0])
    sys.exit(1)

  logger.info(f"Using preset: {preset.name}")
  logger.info(f"  {preset.description}")
  return preset.config


def main(
  config_file: Annotated[
    Path | None,
    typer.Option(
      "--config", "-c", help="JSON configuration file.", exists=True, readable=True
    ),
  ] = None,
  preset: Annotated[
    str,
    typer.Option("--preset", "-p", help=f"Preset ({', '.join(presets.names())})."),
  ] = "default",
  stage: Annotated[
    str,
    typer.Option("--stage", "-s", help="Observation stage (source ... qubit)."),
  ] = "qubit",
  ticks: Annotated[int, typer.Option("--ticks", "-n", min=1)] = 200,
  speed: Annotated[float, typer.Option("--speed", help="Time scale factor.")] = 1.0,
  pause_after: Annotated[
    int | None,
    typer.Option("--pause-after", help="Freeze the clock after this many ticks."),
  ] = None,
  report_every: Annotated[int, typer.Option("--report-every", min=1)] = 20,
  seed: Annotated[int | None, typer.Option("--seed")] = None,
  log_level: Annotated[str, typer.Option("--log-level")] = "INFO",
) -> None:
  """Drive the control-line simulation and log its metrics."""
  setup_logging(level=log_level)

  config = get_config(config_file, preset)
  try:
    observed = Stage.parse(stage)
  except ValueError as exc:
    logger.error(exc.args[0])
    sys.exit(1)

  engine = SimulationEngine(seed=seed)
  analyzer = SpectrumAnalyzer()
  center_freq = config.mixer.lo_freq + config.awg.nco_freq
  logger.info(f"Observing stage {observed.key}, carrier at {center_freq:.3f} GHz")

  clock = 0.0
  result = None
  for tick in range(ticks):
    paused = pause_after is not None and tick >= pause_after
    if not paused:
      clock += TIME_STEP * speed
    elif tick == pause_after:
      logger.info(f"Paused at t={clock:.1f}; recomputing with phase_noise doubled")
      config = update_param(config, "awg", "phase_noise", config.awg.phase_noise * 2)
    else:
      # A paused UI only recomputes on configuration changes.
      continue

    result = engine.simulate_frame(config, clock, observed)

    if tick % report_every == 0:
      spectrum = analyzer.analyze(result.noisy_buffer, center_freq)
      logger.info(
        f"tick {tick:4d} | T2* {result.estimated_t2:7.3f} us | "
        f"P {result.signal_power_dbm:8.2f} dBm | "
        f"T_eff {result.effective_noise_temp:9.4f} K | "
        f"peak {spectrum.frequencies_ghz[spectrum.peak_bin]:.3f} GHz"
      )

  if result is not None:
    budget = engine.coherence.last_budget
    logger.info(f"Final T2* estimate: {result.estimated_t2:.3f} us")
    if budget is not None:
      logger.info(
        f"Noise budget (V^2): awg={budget.awg:.2e} dac={budget.dac:.2e} "
        f"room={budget.cable_room:.2e} cryo={budget.cable_cryo:.2e} "
        f"qubit={budget.qubit:.2e}"
      )


if __name__ == "__main__":
  typer.run(main)
