from __future__ import annotations

import jax
import jax.numpy as jnp

from typing import Mapping

from bgcix.advection import DEFAULT_ADVECTION, div_uc
from bgcix.grid import Clock, Field, RectilinearGrid
from bgcix.reactions import Form, ReactionModel


def node(i, j, k, grid: RectilinearGrid):
    """Coordinates of the center of cell (i, j, k)."""
    return grid.xnode(i), grid.ynode(j), grid.znode(k)


def extract_fields(i, j, k, fields: Mapping[str, Field], names) -> tuple:
    return tuple(fields[name][i, j, k] for name in names)


def continuous_transition(model, name, i, j, k, grid, clock, fields):
    names = (*model.required_tracers(), *model.required_auxiliary_fields())
    values = extract_fields(i, j, k, fields, names)
    x, y, z = node(i, j, k, grid)
    return model.transition(name, x, y, z, clock.time, *values)


def discrete_transition(model, name, i, j, k, grid, clock, fields):
    return model.transition(name, i, j, k, grid, clock, fields)


def biogeochemical_transition(model, name, i, j, k, grid, clock, fields):
    if model.form is Form.DISCRETE:
        return discrete_transition(model, name, i, j, k, grid, clock, fields)
    return continuous_transition(model, name, i, j, k, grid, clock, fields)


def evaluate_transition(
    model: ReactionModel,
    name: str,
    i,
    j,
    k,
    grid: RectilinearGrid,
    clock: Clock,
    fields: Mapping[str, Field],
):
    """Right hand side contributed by `model` to tracer `name` at cell (i, j, k).

    This is the reaction term minus the divergence of the drift flux when the
    model gives the tracer a drift velocity.
    """
    drift = model.drift_velocity(name)
    source = biogeochemical_transition(model, name, i, j, k, grid, clock, fields)
    if drift is None:
        return source

    scheme = model.advection_scheme(name)
    if scheme is None:
        scheme = DEFAULT_ADVECTION
    return source - div_uc(i, j, k, grid, scheme, drift, fields[name])


def transition_tendency(
    model: ReactionModel,
    name: str,
    grid: RectilinearGrid,
    clock: Clock,
    fields: Mapping[str, Field],
) -> jax.Array:
    """`evaluate_transition` for every cell of the grid. Shape = grid.shape"""
    i, j, k = (index.ravel() for index in jnp.indices(grid.shape))

    def at_cell(i, j, k):
        value = evaluate_transition(model, name, i, j, k, grid, clock, fields)
        return jnp.asarray(value)

    return jax.vmap(at_cell)(i, j, k).reshape(grid.shape)


def transition_tendencies(
    model: ReactionModel,
    grid: RectilinearGrid,
    clock: Clock,
    fields: Mapping[str, Field],
) -> dict[str, jax.Array]:
    return {
        name: transition_tendency(model, name, grid, clock, fields)
        for name in model.required_tracers()
    }
