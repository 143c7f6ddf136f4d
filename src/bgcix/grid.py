from __future__ import annotations

import jax
import jax.numpy as jnp

from dataclasses import dataclass
from typing import Mapping

from bgcix.errors import ConfigurationError

CENTER = ("center", "center", "center")


@jax.tree_util.register_dataclass
@dataclass(frozen=True)
class RectilinearGrid:
    # Face coordinates along each axis. Shape = (n + 1,) per axis
    nodes_x: jax.Array
    nodes_y: jax.Array
    nodes_z: jax.Array

    @classmethod
    def build(cls, *, size, x=(0.0, 1.0), y=(0.0, 1.0), z=(-1.0, 0.0)):
        """Equally spaced grid. `z` is negative downwards, the surface at the top."""
        if len(size) != 3 or any(n < 1 for n in size):
            raise ValueError(f"Invalid grid size: {size}. Expected three positive ints")
        nx, ny, nz = size
        return cls(
            nodes_x=jnp.linspace(x[0], x[1], nx + 1),
            nodes_y=jnp.linspace(y[0], y[1], ny + 1),
            nodes_z=jnp.linspace(z[0], z[1], nz + 1),
        )

    def nodes(self, axis: int) -> jax.Array:
        return (self.nodes_x, self.nodes_y, self.nodes_z)[axis]

    @property
    def shape(self) -> tuple[int, int, int]:
        return tuple(self.nodes(axis).shape[0] - 1 for axis in range(3))

    def centers(self, axis: int) -> jax.Array:
        nodes = self.nodes(axis)
        return (nodes[1:] + nodes[:-1]) / 2

    def face_distances(self, axis: int) -> jax.Array:
        """
        Returns the width of each cell along `axis` (dx for flux divergence).
        Shape = (n,)
        """
        nodes = self.nodes(axis)
        return nodes[1:] - nodes[:-1]

    def center_distances(self, axis: int) -> jax.Array:
        """
        Returns the distance between cell centers (dx for slope computation).
        Shape = (n - 1,)
        """
        centers = self.centers(axis)
        return centers[1:] - centers[:-1]

    def xnode(self, i):
        return self.centers(0)[i]

    def ynode(self, j):
        return self.centers(1)[j]

    def znode(self, k):
        return self.centers(2)[k]


@dataclass(frozen=True)
class Field:
    data: jax.Array
    location: tuple[str, str, str] = CENTER

    def __post_init__(self):
        # numpy data cannot be indexed with traced indices
        if not isinstance(self.data, jax.Array) and hasattr(self.data, "__array__"):
            object.__setattr__(self, "data", jnp.asarray(self.data))

    @classmethod
    def center(cls, grid: RectilinearGrid) -> "Field":
        return cls(data=jnp.zeros(grid.shape))

    def __getitem__(self, index):
        return self.data[index]

    def is_compatible(self, grid: RectilinearGrid) -> bool:
        return self.location == CENTER and self.data.shape == grid.shape


jax.tree_util.register_dataclass(Field, data_fields=["data"], meta_fields=["location"])


@jax.tree_util.register_dataclass
@dataclass(frozen=True)
class Clock:
    time: jax.Array
    iteration: jax.Array = 0


def merge_fields(
    tracers: Mapping[str, Field], auxiliary: Mapping[str, Field]
) -> dict[str, Field]:
    """Combine tracers and auxiliary fields into the lookup used for evaluation.

    The field objects themselves are shared, not copied. A name may not be
    both a tracer and an auxiliary field.
    """
    overlap = [name for name in tracers if name in auxiliary]
    if overlap:
        raise ConfigurationError(
            f"{overlap} are present both as tracers and as auxiliary fields"
        )
    return {**tracers, **auxiliary}
