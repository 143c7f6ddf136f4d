from __future__ import annotations

import jax
import jax.numpy as jnp

from dataclasses import dataclass

from bgcix.grid import RectilinearGrid

LIMITER_TYPES = ("upwind", "minmod", "MC")


@jax.tree_util.register_dataclass
@dataclass(frozen=True)
class DriftVelocity:
    """Velocity of a tracer relative to the bulk flow, e.g. particle sinking."""

    u: jax.Array = 0.0
    v: jax.Array = 0.0
    w: jax.Array = 0.0

    @classmethod
    def sinking(cls, speed):
        """A positive speed moves the tracer downwards."""
        return cls(u=0.0, v=0.0, w=-jnp.asarray(speed))

    def component(self, axis: int):
        return (self.u, self.v, self.w)[axis]


@dataclass(frozen=True)
class Advection:
    limiter_type: str = "minmod"  # Options: "minmod", "upwind", "MC"

    def __post_init__(self):
        if self.limiter_type not in LIMITER_TYPES:
            raise ValueError(f"Unknown limiter type: {self.limiter_type}")

    @classmethod
    def build(cls, *, limiter_type):
        return cls(limiter_type=limiter_type)

    def flux_divergence(self, i, j, k, grid: RectilinearGrid, velocity, c):
        """Divergence of `velocity * c` at cell (i, j, k).

        No flux crosses the domain boundary. Indices may be traced, so this
        can be mapped over all cells with `jax.vmap`.
        """
        data = getattr(c, "data", c)
        index = (i, j, k)
        return sum(
            self._axis_divergence(data, index, axis, grid, velocity.component(axis))
            for axis in range(3)
        )

    def _axis_divergence(self, c, index, axis, grid, velocity):
        dx_face = grid.face_distances(axis)
        lower = self._face_flux(c, index, axis, 0, grid, velocity)
        upper = self._face_flux(c, index, axis, 1, grid, velocity)
        return (upper - lower) / dx_face[index[axis]]

    def _face_flux(self, c, index, axis, face_offset, grid, velocity):
        """Upwinded flux through the lower (0) or upper (1) face of the cell."""
        n = grid.shape[axis]
        dx_face = grid.face_distances(axis)
        face = index[axis] + face_offset

        left = face_offset - 1
        right = face_offset
        left_cell = jnp.clip(index[axis] + left, 0, n - 1)
        right_cell = jnp.clip(index[axis] + right, 0, n - 1)

        # right side of cell left of the face, left side of the cell right of it
        left_state = (
            _shifted(c, index, axis, left, n)
            + 0.5 * self.compute_slope(c, index, axis, left, grid) * dx_face[left_cell]
        )
        right_state = (
            _shifted(c, index, axis, right, n)
            - 0.5 * self.compute_slope(c, index, axis, right, grid) * dx_face[right_cell]
        )
        upwind_concentration = self.choose_upwind_concentration(
            left_state, right_state, velocity
        )
        is_interior = (face > 0) & (face < n)
        return jnp.where(is_interior, velocity * upwind_concentration, 0.0)

    def compute_slope(self, c, index, axis, offset, grid):
        """Limited slope in the cell `offset` cells away along `axis`, zero at boundaries."""
        n = grid.shape[axis]
        if self.limiter_type == "upwind" or n < 3:
            return 0.0

        position = index[axis] + offset
        dx_center = grid.center_distances(axis)
        center = _shifted(c, index, axis, offset, n)
        a = (center - _shifted(c, index, axis, offset - 1, n)) / dx_center[
            jnp.clip(position - 1, 0, n - 2)
        ]
        b = (_shifted(c, index, axis, offset + 1, n) - center) / dx_center[
            jnp.clip(position, 0, n - 2)
        ]

        if self.limiter_type == "minmod":
            limited = self.minmod(a, b)
        else:
            limited = self.mc_limiter(a, b)

        is_interior = (position > 0) & (position < n - 1)
        return jnp.where(is_interior, limited, 0.0)

    @staticmethod
    def choose_upwind_concentration(left_state, right_state, velocity):
        """Select upwind concentration based on the direction of flow"""
        return jnp.where(jnp.asarray(velocity) >= 0, left_state, right_state)

    @staticmethod
    def minmod(a, b):
        """Standard minmod limiter."""
        cond = jnp.sign(a) == jnp.sign(b)
        s = jnp.sign(a)
        return jnp.where(cond, s * jnp.minimum(jnp.abs(a), jnp.abs(b)), 0.0)

    @staticmethod
    def minmod3(a, b, c):
        """Minmod of three values, for MC limiter."""
        cond1 = (jnp.sign(a) == jnp.sign(b)) & (jnp.sign(b) == jnp.sign(c))
        s = jnp.sign(a)
        return jnp.where(
            cond1, s * jnp.minimum(jnp.abs(a), jnp.minimum(jnp.abs(b), jnp.abs(c))), 0.0
        )

    def mc_limiter(self, a, b):
        """Monotonized central (MC) limiter."""
        return self.minmod3(2 * a, 0.5 * (a + b), 2 * b)


DEFAULT_ADVECTION = Advection(limiter_type="minmod")


def _shifted(c, index, axis, offset, n):
    shifted = list(index)
    shifted[axis] = jnp.clip(index[axis] + offset, 0, n - 1)
    return c[tuple(shifted)]


def div_uc(i, j, k, grid: RectilinearGrid, scheme: Advection, velocity, c):
    """Flux divergence of `velocity * c` at (i, j, k) using `scheme`."""
    return scheme.flux_divergence(i, j, k, grid, velocity, c)
