from __future__ import annotations

import logging

from typing import Mapping

from bgcix.errors import ConfigurationError
from bgcix.grid import Field, RectilinearGrid
from bgcix.reactions import ReactionModel

logger = logging.getLogger(__name__)


def required_tracers(model: ReactionModel) -> tuple[str, ...]:
    return tuple(model.required_tracers())


def required_auxiliary_fields(model: ReactionModel) -> tuple[str, ...]:
    return tuple(model.required_auxiliary_fields())


def tracer_names(tracers) -> tuple[str, ...]:
    if isinstance(tracers, Mapping):
        return tuple(tracers.keys())
    if isinstance(tracers, str):
        return (tracers,)
    return tuple(tracers)


def all_fields_present(fields, required, grid: RectilinearGrid, kind: str = "field"):
    """Return `fields` extended by a zero center field for every missing name.

    Fields that are already present are kept as they are. When `fields` is a
    sequence of names rather than a mapping, missing names are appended.
    """
    if not isinstance(fields, Mapping):
        names = tracer_names(fields)
        return names + tuple(name for name in required if name not in names)

    for name in required:
        if name in fields and not _is_compatible(fields[name], grid):
            raise ConfigurationError(
                f"Required {kind} {name!r} exists but is not a cell-centered "
                f"field of shape {grid.shape}: {fields[name]!r}"
            )

    missing = [name for name in required if name not in fields]
    if missing:
        logger.debug("Allocating missing %s fields %s", kind, missing)
    return {**fields, **{name: Field.center(grid) for name in missing}}


def _is_compatible(value, grid):
    return isinstance(value, Field) and value.is_compatible(grid)


def validate(tracers, auxiliary, model: ReactionModel, grid: RectilinearGrid):
    """Ensure `tracers` and `auxiliary` hold every field `model` needs.

    Returns new tracer and auxiliary collections. The inputs are not modified.
    """
    req_tracers = required_tracers(model)
    req_auxiliary = required_auxiliary_fields(model)

    misplaced = [name for name in req_tracers if name in tracer_names(auxiliary)]
    misplaced += [name for name in req_auxiliary if name in tracer_names(tracers)]
    if misplaced:
        raise ConfigurationError(
            f"{misplaced} are present both as tracers and as auxiliary fields"
        )

    tracers = all_fields_present(tracers, req_tracers, grid, kind="tracer")
    auxiliary = all_fields_present(auxiliary, req_auxiliary, grid, kind="auxiliary")

    tracer_set, auxiliary_set = tracer_names(tracers), tracer_names(auxiliary)
    ambiguous = [
        name
        for name in model.field_dependencies()
        if name in tracer_set and name in auxiliary_set
    ]
    if ambiguous:
        raise ConfigurationError(
            f"Forcings depend on {ambiguous}, which are present both as tracers "
            f"and as auxiliary fields"
        )

    available = tracer_set + auxiliary_set
    missing = [name for name in model.field_dependencies() if name not in available]
    if missing:
        raise ConfigurationError(
            f"Forcings depend on {missing}, which are neither tracers nor "
            f"auxiliary fields"
        )
    return tracers, auxiliary
