"""Configuration for benchmark runs."""

import os
from collections.abc import Mapping
from typing import Self

import msgspec
from msgspec import Struct

from litmus.errors import ConfigError

ENV_PREFIX = "LITMUS_"
ENV_TRUTHY = {"1", "true", "yes"}


class BenchmarkConfig(Struct):
    """Tunables shared by a benchmark, its clones and its sampling session.

    Args:
        init_run_count: Payload repetitions in a benchmark's first cycle.
        cycle_delay_s: Delay between asynchronous steps (seconds).
        max_time_elapsed_s: Soft ceiling on a sampling session (seconds).
        default_async: Whether ``run()`` defers steps onto the event loop
            when no explicit mode is given.
        calibration_index: Which calibration's period is subtracted from
            looped or hybrid cycles.
        min_time_s: Minimum duration of one cycle. ``0`` derives it from the
            clock resolution (1% uncertainty, floored at 50ms).
        init_sample_size: Number of clones enqueued when a session starts.
        target_rme: Relative margin of error (percent) at which sampling stops.
        unroll_limit: Maximum number of payload calls in one unrolled block.
    """

    init_run_count: int = 5
    cycle_delay_s: float = 0.2
    max_time_elapsed_s: float = 8.0
    default_async: bool = False
    calibration_index: int = 0
    min_time_s: float = 0.0
    init_sample_size: int = 5
    target_rme: float = 1.0
    unroll_limit: int = 4096

    def __post_init__(self):
        """Validate run counts, durations and thresholds."""
        if self.init_run_count <= 0:
            raise ConfigError(
                f"Invalid init_run_count; expected >0 but got {self.init_run_count}"
            )
        if self.cycle_delay_s < 0.0:
            raise ConfigError(
                f"Invalid cycle_delay_s; expected >=0 but got {self.cycle_delay_s}"
            )
        if self.max_time_elapsed_s <= 0.0:
            raise ConfigError(
                f"Invalid max_time_elapsed_s; expected >0 but got {self.max_time_elapsed_s}"
            )
        if self.calibration_index < 0:
            raise ConfigError(
                f"Invalid calibration_index; expected >=0 but got {self.calibration_index}"
            )
        if self.min_time_s < 0.0:
            raise ConfigError(
                f"Invalid min_time_s; expected >=0 but got {self.min_time_s}"
            )
        if self.init_sample_size <= 1:
            raise ConfigError(
                f"Invalid init_sample_size; expected >1 but got {self.init_sample_size}"
            )
        if self.target_rme <= 0.0:
            raise ConfigError(
                f"Invalid target_rme; expected >0 but got {self.target_rme}"
            )
        if self.unroll_limit <= 1:
            raise ConfigError(
                f"Invalid unroll_limit; expected >1 but got {self.unroll_limit}"
            )

    @classmethod
    def default(cls) -> Self:
        """Return the stock configuration (5 initial runs, 8s session ceiling)."""
        return cls()

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
    ) -> Self:
        """Build a configuration from ``<prefix><FIELD>`` environment variables.

        Unset variables keep their defaults. Boolean fields accept
        ``1``, ``true`` or ``yes`` (case-insensitive) as true.

        Args:
            prefix: Variable name prefix. Defaults to ``LITMUS_``.
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            The validated configuration.

        Raises:
            ConfigError: If a variable cannot be converted or fails validation.

        """
        if environ is None:
            environ = os.environ

        raw: dict[str, object] = {}
        for name in cls.__struct_fields__:
            value = environ.get(prefix + name.upper())
            if value is None:
                continue
            if name == "default_async":
                raw[name] = value.lower() in ENV_TRUTHY
            else:
                raw[name] = value

        try:
            return msgspec.convert(raw, type=cls, strict=False)
        except msgspec.ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    def replace(self, **changes: object) -> Self:
        """Return a validated copy with ``changes`` applied."""
        fields = msgspec.structs.asdict(self)
        fields.update(changes)
        return type(self)(**fields)
