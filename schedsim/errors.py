from __future__ import annotations


class SchedulerError(Exception):
    """Base class for errors raised by the scheduling engine."""


class InvalidProcessSpec(SchedulerError, ValueError):
    """A process specification cannot be admitted (bad timing fields, duplicate id, ...)."""


class ConfigurationError(SchedulerError, ValueError):
    """Engine options are out of range."""


class EngineInvariantError(SchedulerError, RuntimeError):
    """
    Internal consistency check failed.

    This always indicates a logic defect in the engine, never bad input, and
    the run cannot continue.
    """
