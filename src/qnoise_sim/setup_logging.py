"""Logging configuration for the qnoise_sim package."""

import logging

import coloredlogs

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FIELD_STYLES = {
  "asctime": {"color": "green"},
  "levelname": {"bold": True},
  "name": {"color": "blue"},
}


def setup_logging(level: str | int = "INFO") -> None:
  """Install colored logging on the root logger.

  Call once from the entry point; library modules only log through their
  module-level loggers. Runtime warnings (numpy overflow on extreme line
  settings, for instance) are routed into the same stream under the
  `py.warnings` logger instead of going to bare stderr.

  Args:
    level: Level name ("DEBUG", "INFO", ...) or numeric logging level.
  """
  if isinstance(level, str):
    level = level.upper()
  coloredlogs.install(
    level=level,
    fmt=LOG_FORMAT,
    datefmt="%H:%M:%S",
    field_styles=FIELD_STYLES,
    is_system_wide=True,
  )
  logging.captureWarnings(True)
