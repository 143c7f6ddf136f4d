from __future__ import annotations

import diffrax
import equinox as eqx

from bgcix.grid import Clock, Field, RectilinearGrid, merge_fields
from bgcix.reactions import ReactionModel
from bgcix.transitions import transition_tendency


def make_rhs(model: ReactionModel, grid: RectilinearGrid):
    """Right hand side `rhs(time, tracers, auxiliary)` for tracer arrays."""

    def rhs(time, state, auxiliary):
        tracers = {name: Field(data=value) for name, value in state.items()}
        fields = merge_fields(tracers, auxiliary)
        clock = Clock(time=time)
        return {
            name: transition_tendency(model, name, grid, clock, fields)
            for name in state
        }

    return rhs


def make_solver(
    model: ReactionModel,
    grid: RectilinearGrid,
    *,
    t_max,
    t_points,
    rtol=1e-8,
    atol=1e-8,
    solver=None,
    t0=0,
    dt0=None,
):
    """
    Integrate the transitions of `model` alone, without any bulk transport.

    Returns `solve(tracers, auxiliary)` where `tracers` maps every tracer
    name to an array of `grid.shape` and `auxiliary` maps names to fields
    held fixed during the integration.
    """
    if solver is None:
        solver = diffrax.Tsit5()

    term = diffrax.ODETerm(make_rhs(model, grid))
    stepsize_controller = diffrax.PIDController(rtol=rtol, atol=atol)
    t_vals = diffrax.SaveAt(ts=t_points)

    @eqx.filter_jit
    def solve(tracers, auxiliary):
        return diffrax.diffeqsolve(
            term,
            solver,
            t0=t0,
            t1=t_max,
            dt0=dt0,
            y0=tracers,
            saveat=t_vals,
            args=auxiliary,
            stepsize_controller=stepsize_controller,
            max_steps=1024 * 32 * 64,
        )

    return solve
