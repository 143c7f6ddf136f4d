import jax
import jax.numpy as jnp
import numpy as np
import pytest

from bgcix import (
    CENTER,
    Clock,
    ConfigurationError,
    Field,
    GenericTracerReaction,
    NoReaction,
    RectilinearGrid,
    biogeochemical_forcing,
    merge_fields,
    required_auxiliary_fields,
    required_tracers,
    tracer_names,
    transition_tendency,
    validate,
)

GRID = RectilinearGrid.build(size=(3, 2, 4), z=(-40, 0))


def npz_model():
    return GenericTracerReaction.build(
        tracers=["N", "P", "Z"],
        transitions={
            "P": lambda x, y, z, t, N, P, Z, PAR: PAR * N * P,
        },
        auxiliary_fields=["PAR"],
    )


def test_required_fields():
    model = npz_model()
    assert required_tracers(model) == ("N", "P", "Z")
    assert required_auxiliary_fields(model) == ("PAR",)
    assert required_tracers(NoReaction()) == ()
    assert required_auxiliary_fields(NoReaction()) == ()


def test_missing_fields_are_added():
    T = Field.center(GRID)
    tracers, auxiliary = validate({"T": T}, {}, npz_model(), GRID)
    assert list(tracers) == ["T", "N", "P", "Z"]
    assert list(auxiliary) == ["PAR"]
    for field in [*tracers.values(), *auxiliary.values()]:
        assert field.location == CENTER
        assert field.data.shape == GRID.shape
    np.testing.assert_array_equal(tracers["P"].data, np.zeros(GRID.shape))
    assert tracers["T"] is T
    assert tracers["N"] is not tracers["P"]


def test_existing_fields_are_kept():
    P = Field(jnp.ones(GRID.shape))
    PAR = Field(jnp.full(GRID.shape, 100.0))
    tracers = {"P": P}
    auxiliary = {"PAR": PAR}
    new_tracers, new_auxiliary = validate(tracers, auxiliary, npz_model(), GRID)
    assert new_tracers["P"] is P
    assert new_auxiliary["PAR"] is PAR
    # inputs are left alone
    assert list(tracers) == ["P"]
    assert list(auxiliary) == ["PAR"]
    assert new_tracers is not tracers


def test_validation_is_idempotent():
    model = npz_model()
    once = validate({"T": Field.center(GRID)}, {}, model, GRID)
    twice = validate(*once, model, GRID)
    for first, second in zip(once, twice):
        assert list(first) == list(second)
        for name in first:
            assert first[name] is second[name]


def test_no_reaction_adds_nothing():
    tracers = {"T": Field.center(GRID)}
    new_tracers, auxiliary = validate(tracers, {}, NoReaction(), GRID)
    assert new_tracers == tracers
    assert auxiliary == {}


@pytest.mark.parametrize(
    "field",
    [
        Field(jnp.zeros((3, 2, 5))),
        Field(jnp.zeros((3, 2, 4)), location=("center", "center", "face")),
        jnp.zeros((3, 2, 4)),
    ],
)
@pytest.mark.parametrize("side, name", [("tracer", "P"), ("auxiliary", "PAR")])
def test_incompatible_field(field, side, name):
    tracers, auxiliary = ({name: field}, {}) if side == "tracer" else ({}, {name: field})
    with pytest.raises(ConfigurationError, match=f"'{name}'"):
        validate(tracers, auxiliary, npz_model(), GRID)


def test_incompatible_unrequired_field_is_ignored():
    w = Field(jnp.zeros((3, 2, 5)), location=("center", "center", "face"))
    tracers, _ = validate({"w": w}, {}, npz_model(), GRID)
    assert tracers["w"] is w


def test_required_tracer_among_auxiliary_fields():
    with pytest.raises(ConfigurationError, match="both"):
        validate({}, {"P": Field.center(GRID)}, npz_model(), GRID)


def test_forcing_dependencies_must_exist():
    forcing = biogeochemical_forcing(
        lambda x, y, z, t, P, T: -0.01 * T * P, field_dependencies=("P", "T")
    )
    model = GenericTracerReaction.build(tracers=["P"], transitions={"P": forcing})
    with pytest.raises(ConfigurationError, match="'T'"):
        validate({}, {}, model, GRID)
    # a host tracer satisfies the dependency
    tracers, _ = validate({"T": Field.center(GRID)}, {}, model, GRID)
    assert list(tracers) == ["T", "P"]


def test_tracer_names():
    assert tracer_names({"T": None, "S": None}) == ("T", "S")
    assert tracer_names(("T", "S")) == ("T", "S")
    assert tracer_names("T") == ("T",)


def test_validate_names():
    tracers, auxiliary = validate(("T", "P"), (), npz_model(), GRID)
    assert tracers == ("T", "P", "N", "Z")
    assert auxiliary == ("PAR",)
    assert validate(tracers, auxiliary, npz_model(), GRID) == (tracers, auxiliary)


def test_forcing_dependency_in_both_field_sets():
    forcing = biogeochemical_forcing(
        lambda x, y, z, t, P, T: -0.01 * T * P, field_dependencies=("P", "T")
    )
    model = GenericTracerReaction.build(tracers=["P"], transitions={"P": forcing})
    tracers = {"T": Field(jnp.ones(GRID.shape))}
    auxiliary = {"T": Field.center(GRID)}
    with pytest.raises(ConfigurationError, match="'T'"):
        validate(tracers, auxiliary, model, GRID)
    with pytest.raises(ConfigurationError, match="'T'"):
        merge_fields(tracers, auxiliary)


def test_numpy_backed_field():
    P = Field(np.ones(GRID.shape))
    model = GenericTracerReaction.build(
        tracers=["P"],
        transitions={"P": lambda x, y, z, t, P: -0.5 * P},
        drift_speeds={"P": 1.0},
    )
    tracers, _ = validate({"P": P}, {}, model, GRID)
    assert tracers["P"] is P
    assert isinstance(P.data, jax.Array)
    tendency = transition_tendency(model, "P", GRID, Clock(0.0), tracers)
    assert tendency.shape == GRID.shape
    np.testing.assert_allclose(tendency[:, :, 1:-1], -0.5, rtol=1e-6)
