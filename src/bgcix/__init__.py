from bgcix.errors import ConfigurationError
from bgcix.grid import CENTER, Clock, Field, RectilinearGrid, merge_fields
from bgcix.advection import DEFAULT_ADVECTION, Advection, DriftVelocity, div_uc
from bgcix.forcing import (
    ContinuousForcing,
    DiscreteForcing,
    biogeochemical_forcing,
    declare_parameters,
    regularize_forcing,
)
from bgcix.reactions import Form, GenericTracerReaction, NoReaction, ReactionModel
from bgcix.validation import (
    required_auxiliary_fields,
    required_tracers,
    tracer_names,
    validate,
)
from bgcix.transitions import (
    continuous_transition,
    discrete_transition,
    evaluate_transition,
    extract_fields,
    node,
    transition_tendencies,
    transition_tendency,
)
from bgcix.solver import make_solver

__all__ = [
    "ConfigurationError",
    "CENTER",
    "Clock",
    "Field",
    "RectilinearGrid",
    "merge_fields",
    "DEFAULT_ADVECTION",
    "Advection",
    "DriftVelocity",
    "div_uc",
    "ContinuousForcing",
    "DiscreteForcing",
    "biogeochemical_forcing",
    "declare_parameters",
    "regularize_forcing",
    "Form",
    "GenericTracerReaction",
    "NoReaction",
    "ReactionModel",
    "required_auxiliary_fields",
    "required_tracers",
    "tracer_names",
    "validate",
    "continuous_transition",
    "discrete_transition",
    "evaluate_transition",
    "extract_fields",
    "node",
    "transition_tendencies",
    "transition_tendency",
    "make_solver",
]
