"""
Runtime Configuration

Settings for the default scheduler and worker pool.
"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_ENV_PREFIX = "FUTUREKIT_"


def _read_env(prefix: str, fields: Dict[str, str]) -> Dict[str, Any]:
    """Collect the environment variables that are actually set."""
    values: Dict[str, Any] = {}
    for field_name, suffix in fields.items():
        raw = os.getenv(f"{prefix}{suffix}")
        if raw is not None and raw != "":
            values[field_name] = raw
    return values


class SchedulerConfig(BaseModel):
    """Configuration for ThreadScheduler."""

    model_config = ConfigDict(frozen=True)

    thread_name: str = "futurekit-scheduler"
    daemon: bool = True
    # How long shutdown(wait=True) waits for the worker thread
    join_timeout_secs: float = Field(default=5.0, gt=0)

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "SchedulerConfig":
        """
        Build config from environment variables.

        Reads ``{prefix}SCHEDULER_THREAD_NAME``, ``{prefix}SCHEDULER_DAEMON``
        and ``{prefix}SCHEDULER_JOIN_TIMEOUT_SECS``. Unset variables keep
        their defaults.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        return cls.model_validate(_read_env(prefix, {
            "thread_name": "SCHEDULER_THREAD_NAME",
            "daemon": "SCHEDULER_DAEMON",
            "join_timeout_secs": "SCHEDULER_JOIN_TIMEOUT_SECS",
        }))


class WorkerPoolConfig(BaseModel):
    """Configuration for WorkerPool."""

    model_config = ConfigDict(frozen=True)

    max_workers: Optional[int] = Field(default=None, gt=0)
    thread_name_prefix: str = "futurekit-worker"

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "WorkerPoolConfig":
        """
        Build config from environment variables.

        Reads ``{prefix}WORKER_MAX_WORKERS`` and
        ``{prefix}WORKER_THREAD_NAME_PREFIX``.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        return cls.model_validate(_read_env(prefix, {
            "max_workers": "WORKER_MAX_WORKERS",
            "thread_name_prefix": "WORKER_THREAD_NAME_PREFIX",
        }))
