from __future__ import annotations

import enum
import logging

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from bgcix.advection import DEFAULT_ADVECTION, Advection, DriftVelocity
from bgcix.errors import ConfigurationError
from bgcix.forcing import regularize_forcing

logger = logging.getLogger(__name__)


class Form(enum.Enum):
    # transition(name, x, y, z, t, *required_values)
    CONTINUOUS = "continuous"
    # transition(name, i, j, k, grid, clock, fields)
    DISCRETE = "discrete"


class ReactionModel(ABC):
    """Source terms for a set of tracers, evaluated one cell at a time.

    `form` selects how `transition` is called. Continuous form models
    receive the cell center coordinates, the time and the values of all
    required tracers followed by all required auxiliary fields. Discrete
    form models receive the indices, the grid, the clock and the fields.
    """

    form: Form = Form.CONTINUOUS

    def required_tracers(self) -> tuple[str, ...]:
        return ()

    def required_auxiliary_fields(self) -> tuple[str, ...]:
        return ()

    def field_dependencies(self) -> tuple[str, ...]:
        """Names read by the model besides its required fields."""
        return ()

    def drift_velocity(self, name: str) -> DriftVelocity | None:
        return None

    def advection_scheme(self, name: str) -> Advection | None:
        return None

    @abstractmethod
    def transition(self, name: str, *args): ...

    def update_state(self, clock, auxiliary, tracers):
        """Return auxiliary fields for the next step. Unchanged by default."""
        return auxiliary


@dataclass(frozen=True)
class NoReaction(ReactionModel):
    form = Form.CONTINUOUS

    def transition(self, name, *args):
        return 0.0


def _check_unique(names, kind):
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicated {kind} names: {duplicates}")


def _check_declared(names, tracers, what):
    undeclared = [name for name in names if name not in tracers]
    if undeclared:
        raise ConfigurationError(
            f"{what} given for {undeclared}, which are not among the "
            f"declared tracers {list(tracers)}"
        )


def _as_names(names) -> tuple[str, ...]:
    if isinstance(names, str):
        return (names,)
    return tuple(names)


@dataclass(frozen=True, kw_only=True, eq=False)
class GenericTracerReaction(ReactionModel):
    """
    Reaction model built from one user function per tracer.

    Example
    =======

    def growth(x, y, z, t, P, p):
        return (p.mu0 * jnp.exp(z / p.lam) - p.m) * P

    model = GenericTracerReaction.build(
        tracers="P",
        transitions={"P": growth},
        drift_speeds={"P": 10 / 86400},
        parameters=declare_parameters(mu0=1 / 86400, lam=5.0, m=0.1 / 86400),
    )
    """

    tracers: tuple[str, ...]
    transitions: Mapping[str, Any]
    advection_schemes: Mapping[str, Advection]
    drift_velocities: Mapping[str, DriftVelocity]
    auxiliary_fields: tuple[str, ...] = ()
    state_updater: Callable | None = None
    form: Form = field(default=Form.DISCRETE, init=False)

    @classmethod
    def build(
        cls,
        tracers,
        transitions,
        *,
        advection_scheme: Advection | Mapping[str, Advection] = DEFAULT_ADVECTION,
        drift_speeds: Mapping[str, Any] | None = None,
        auxiliary_fields=(),
        parameters=None,
        discrete_form: bool = False,
        state_updater: Callable | None = None,
    ):
        if drift_speeds is None:
            drift_speeds = {}

        tracers = _as_names(tracers)
        auxiliary_fields = _as_names(auxiliary_fields)
        _check_unique(tracers, "tracer")
        _check_unique(auxiliary_fields, "auxiliary field")
        both = [name for name in tracers if name in auxiliary_fields]
        if both:
            raise ConfigurationError(
                f"{both} declared both as tracers and as auxiliary fields"
            )

        _check_declared(list(transitions), tracers, "Transitions")
        _check_declared(list(drift_speeds), tracers, "Drift speeds")

        if isinstance(advection_scheme, Advection):
            schemes = {name: advection_scheme for name in drift_speeds}
        else:
            _check_declared(list(advection_scheme), tracers, "Advection schemes")
            schemes = dict(advection_scheme)

        forcings = {
            name: regularize_forcing(
                transition,
                default_dependencies=tracers + auxiliary_fields,
                parameters=parameters,
                discrete_form=discrete_form,
            )
            for name, transition in transitions.items()
        }
        drift_velocities = {
            name: DriftVelocity.sinking(speed) for name, speed in drift_speeds.items()
        }
        logger.debug(
            "Built reaction model for tracers %s with transitions for %s "
            "and drift for %s",
            tracers,
            list(forcings),
            list(drift_velocities),
        )
        return cls(
            tracers=tracers,
            transitions=MappingProxyType(forcings),
            advection_schemes=MappingProxyType(schemes),
            drift_velocities=MappingProxyType(drift_velocities),
            auxiliary_fields=auxiliary_fields,
            state_updater=state_updater,
        )

    def required_tracers(self):
        return self.tracers

    def required_auxiliary_fields(self):
        return self.auxiliary_fields

    def field_dependencies(self):
        names = []
        for forcing in self.transitions.values():
            names.extend(n for n in forcing.field_dependencies if n not in names)
        return tuple(names)

    def drift_velocity(self, name):
        return self.drift_velocities.get(name)

    def advection_scheme(self, name):
        return self.advection_schemes.get(name)

    def transition(self, name, i, j, k, grid, clock, fields):
        if name not in self.tracers:
            raise KeyError(f"{name!r} is not a tracer of this reaction model")
        forcing = self.transitions.get(name)
        if forcing is None:
            return 0.0
        return forcing(i, j, k, grid, clock, fields)

    def update_state(self, clock, auxiliary, tracers):
        if self.state_updater is None:
            return auxiliary
        return self.state_updater(clock, auxiliary, tracers)
