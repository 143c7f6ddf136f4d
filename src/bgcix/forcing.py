from __future__ import annotations

import logging

import jax

from dataclasses import dataclass, make_dataclass
from typing import Any, Callable

from bgcix.errors import ConfigurationError

logger = logging.getLogger(__name__)


def declare_parameters(**values):
    """
    Bundle named parameters for transition functions into an immutable object.

    For example, `declare_parameters(mu0=1.0, m=0.1)` returns an instance of
    a frozen dataclass with the attributes `mu0` and `m`:

    ```
    @jax.tree_util.register_dataclass
    @dataclass(frozen=True)
    class Parameters:
        mu0: float
        m: float
    ```
    """
    Parameters = make_dataclass(
        "Parameters",
        [(name, Any) for name in values],
        frozen=True,
    )
    Parameters = jax.tree_util.register_dataclass(Parameters)
    return Parameters(**values)


def _position(i, j, k, grid):
    return grid.xnode(i), grid.ynode(j), grid.znode(k)


@dataclass(frozen=True)
class ContinuousForcing:
    """Forcing written in terms of coordinates, time and selected field values.

    Called with `(i, j, k, grid, clock, fields)`, it invokes
    `func(x, y, z, t, *values, [parameters])` where `values` are the
    `field_dependencies` at the cell center, in that order.
    """

    func: Callable
    parameters: Any = None
    field_dependencies: tuple[str, ...] = ()

    def __call__(self, i, j, k, grid, clock, fields):
        args = tuple(fields[name][i, j, k] for name in self.field_dependencies)
        if self.parameters is not None:
            args = (*args, self.parameters)
        x, y, z = _position(i, j, k, grid)
        return self.func(x, y, z, clock.time, *args)


@dataclass(frozen=True)
class DiscreteForcing:
    """Forcing with direct access to grid indices and all fields."""

    func: Callable
    parameters: Any = None

    def __call__(self, i, j, k, grid, clock, fields):
        if self.parameters is None:
            return self.func(i, j, k, grid, clock, fields)
        return self.func(i, j, k, grid, clock, fields, self.parameters)

    @property
    def field_dependencies(self) -> tuple[str, ...]:
        return ()


def biogeochemical_forcing(
    func, *, parameters=None, discrete_form=False, field_dependencies=()
):
    if not callable(func):
        raise ConfigurationError(f"Forcing function must be callable, got {func!r}")
    if discrete_form:
        if field_dependencies:
            raise ConfigurationError(
                "Discrete form forcings read fields themselves and cannot "
                f"declare field_dependencies {tuple(field_dependencies)}"
            )
        return DiscreteForcing(func=func, parameters=parameters)

    field_dependencies = tuple(field_dependencies)
    duplicates = {name for name in field_dependencies if field_dependencies.count(name) > 1}
    if duplicates:
        raise ConfigurationError(
            f"Duplicated field dependencies {sorted(duplicates)} in forcing {func!r}"
        )
    return ContinuousForcing(
        func=func, parameters=parameters, field_dependencies=field_dependencies
    )


def regularize_forcing(
    forcing, *, default_dependencies=(), parameters=None, discrete_form=False
):
    """Turn a bare function into a forcing, leave forcings as they are."""
    if isinstance(forcing, (ContinuousForcing, DiscreteForcing)):
        return forcing
    if discrete_form:
        logger.debug("Wrapping %r as a discrete forcing", forcing)
        return biogeochemical_forcing(forcing, parameters=parameters, discrete_form=True)
    logger.debug(
        "Wrapping %r as a continuous forcing of %s", forcing, tuple(default_dependencies)
    )
    return biogeochemical_forcing(
        forcing, parameters=parameters, field_dependencies=default_dependencies
    )
