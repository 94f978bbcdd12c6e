"""
Quadapprox module holding package wide settings.

The dimension names are used whenever a builder registers variables in a
linopy model, so changing them affects every approximation built afterwards.
"""

from __future__ import annotations

from typing import Any

DIMENSION_SETTINGS = (
    "component_dim",
    "time_dim",
    "breakpoint_dim",
    "segment_dim",
    "level_dim",
)


class OptionSettings:
    def __init__(self, **kwargs: Any) -> None:
        self._defaults = kwargs
        self._current_values = kwargs.copy()

    def __call__(self, **kwargs: Any) -> OptionSettings:
        self.set_value(**kwargs)
        return self

    def __getitem__(self, key: str) -> Any:
        return self.get_value(key)

    def __setitem__(self, key: str, value: Any) -> None:
        return self.set_value(**{key: value})

    def set_value(self, **kwargs: Any) -> None:
        for k in kwargs:
            if k not in self._defaults:
                raise KeyError(f"{k} is not a valid setting.")
        updated = {**self._current_values, **kwargs}
        dims = [updated[k] for k in DIMENSION_SETTINGS if k in updated]
        if len(set(dims)) != len(dims):
            raise ValueError(f"Dimension names must be distinct, got {dims}.")
        self._current_values = updated

    def get_value(self, name: str) -> Any:
        if name in self._defaults:
            return self._current_values[name]
        else:
            raise KeyError(f"{name} is not a valid setting.")

    def reset(self) -> None:
        self._current_values = self._defaults.copy()

    def __enter__(self) -> OptionSettings:
        return self

    def __exit__(self, exc_type: None, exc_val: None, exc_tb: None) -> None:
        self.reset()

    def __repr__(self) -> str:
        settings = "\n ".join(
            f"{name}={value}" for name, value in self._current_values.items()
        )
        return f"OptionSettings:\n {settings}"


options = OptionSettings(
    component_dim="name",
    time_dim="time",
    breakpoint_dim="breakpoint",
    segment_dim="segment",
    level_dim="level",
    name_separator="__",
    check_domain=True,
)
