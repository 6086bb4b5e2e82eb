"""
Natural neighbor regridding of scattered sites onto xarray grids.

Weights are computed once for every target grid point and then applied to any
number of variables and extra dimensions through ``xr.apply_ufunc``, so
dask-backed inputs stay lazy.

This file is part of natural-neighbor.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from __future__ import annotations

import warnings
from collections.abc import Hashable
from typing import Any

import numpy as np
import xarray as xr

from natural_neighbor.constants import DEFAULT_DEGREE_LIMIT, PROBE_EPSILON, SITE_DIM
from natural_neighbor.interpolation import Interpolator, SparseWeights


def _apply_weights_wrapper(data_slice: np.ndarray, weights: SparseWeights, target_shape: tuple[int, ...]) -> np.ndarray:
    """Wrapper for weight application to be used with apply_ufunc (picklable)."""
    # The input is (..., site); the output of apply is (..., target_points_flat)
    interpolated = weights.apply(data_slice)
    return interpolated.reshape(*data_slice.shape[:-1], *target_shape)


class NaturalNeighborRegridder:
    """Regrid data defined on scattered sites to a target grid.

    Args:
        interpolator: Interpolator over the sites
        target_grid: Dataset holding the target ``x_name`` and ``y_name`` coordinates,
            either both 1D (a rectilinear grid) or both 2D with the same dimensions
        x_name: Name of the x coordinate in the target grid
        y_name: Name of the y coordinate in the target grid
        site_dim: Name of the site dimension of the data to regrid
    """

    def __init__(
        self,
        interpolator: Interpolator,
        target_grid: xr.Dataset,
        x_name: str = "x",
        y_name: str = "y",
        site_dim: str = SITE_DIM,
    ):
        if not isinstance(target_grid, xr.Dataset):
            msg = "target_grid must be an xarray Dataset"
            raise TypeError(msg)
        for name in (x_name, y_name):
            if name not in target_grid.variables:
                msg = f"Coordinate '{name}' not found in target_grid"
                raise ValueError(msg)

        self.interpolator = interpolator
        self.target_grid = target_grid
        self.x_name = x_name
        self.y_name = y_name
        self.site_dim = site_dim

        self._build_target_points()
        self.weights = interpolator.compute_weights(self.target_points)

        if not np.any(self.weights.valid):
            warnings.warn(
                "Natural neighbor regridding found no target points inside the convex hull of the sites. "
                "Check coordinates.",
                stacklevel=2,
            )

    @classmethod
    def from_sites(
        cls,
        x,
        y,
        target_grid: xr.Dataset,
        x_name: str = "x",
        y_name: str = "y",
        site_dim: str = SITE_DIM,
        degree_limit: int = DEFAULT_DEGREE_LIMIT,
        probe_epsilon: float = PROBE_EPSILON,
    ) -> NaturalNeighborRegridder:
        """Triangulate the sites given by ``x`` and ``y`` and build a regridder."""
        points = np.column_stack([np.asarray(x, dtype=np.float64).ravel(), np.asarray(y, dtype=np.float64).ravel()])
        interpolator = Interpolator(points, degree_limit=degree_limit, probe_epsilon=probe_epsilon)
        return cls(interpolator, target_grid, x_name=x_name, y_name=y_name, site_dim=site_dim)

    def _build_target_points(self) -> None:
        """Flatten the target coordinates into an (M, 2) array."""
        target_x = self.target_grid[self.x_name]
        target_y = self.target_grid[self.y_name]

        if target_x.ndim == 1 and target_y.ndim == 1:
            # 1D coordinates (rectilinear grid) - need to create 2D meshgrid
            self.target_dims: list[Hashable] = [target_y.dims[0], target_x.dims[0]]
            x_2d, y_2d = np.meshgrid(target_x.values, target_y.values)
        elif target_x.ndim == 2 and target_x.dims == target_y.dims:
            self.target_dims = list(target_x.dims)
            x_2d, y_2d = target_x.values, target_y.values
        else:
            msg = f"Target coordinates must be both 1D or both 2D on the same dims, got {target_x.dims} and {target_y.dims}"
            raise ValueError(msg)

        self.target_shape: tuple[int, ...] = x_2d.shape
        self.target_points = np.column_stack([x_2d.ravel(), y_2d.ravel()]).astype(np.float64)

    def __call__(self, data: xr.DataArray | xr.Dataset) -> xr.DataArray | xr.Dataset:
        """Regrid data.

        Args:
            data: Input data with a site dimension

        Returns:
            Regridded data on the target grid, NaN outside the convex hull of the sites
        """
        if isinstance(data, xr.DataArray):
            return self._regrid_dataarray(data)
        elif isinstance(data, xr.Dataset):
            return self._regrid_dataset(data)
        else:
            msg = "Input must be xarray DataArray or Dataset"
            raise TypeError(msg)

    def _regrid_dataarray(self, data: xr.DataArray) -> xr.DataArray:
        """Regrid a single DataArray."""
        if self.site_dim not in data.dims:
            msg = f"Data has no '{self.site_dim}' dimension"
            raise ValueError(msg)
        if data.sizes[self.site_dim] != self.interpolator.n_sites:
            msg = f"Data has {data.sizes[self.site_dim]} sites, the regridder has {self.interpolator.n_sites}"
            raise ValueError(msg)

        output_sizes = dict(zip(self.target_dims, self.target_shape, strict=True))

        result = xr.apply_ufunc(
            _apply_weights_wrapper,
            data,
            kwargs={"weights": self.weights, "target_shape": self.target_shape},
            input_core_dims=[[self.site_dim]],
            output_core_dims=[self.target_dims],
            exclude_dims={self.site_dim},
            vectorize=False,
            dask="parallelized",
            output_dtypes=[np.float64],
            dask_gufunc_kwargs={"allow_rechunk": True, "output_sizes": output_sizes},
            keep_attrs=True,
        )

        self._attach_target_coords(result)

        history_message = "Regridded using NaturalNeighborRegridder"
        existing_history = result.attrs.get("history", "")
        result.attrs["history"] = f"{existing_history}\n{history_message}" if existing_history else history_message
        return result

    def _regrid_dataset(self, dataset: xr.Dataset) -> xr.Dataset:
        """Regrid every variable of a Dataset that lies on the site dimension."""
        result_dataset = xr.Dataset(attrs=dataset.attrs)
        for var_name, data_array in dataset.data_vars.items():
            if self.site_dim in data_array.dims:
                result_dataset[var_name] = self._regrid_dataarray(data_array)
            else:
                result_dataset[var_name] = data_array

        self._attach_target_coords(result_dataset)
        return result_dataset

    def _attach_target_coords(self, result: xr.DataArray | xr.Dataset) -> None:
        result.coords[self.x_name] = self.target_grid[self.x_name]
        result.coords[self.y_name] = self.target_grid[self.y_name]
        for dim in self.target_dims:
            if dim in self.target_grid.coords:
                result.coords[dim] = self.target_grid.coords[dim]

    def info(self) -> dict[str, Any]:
        """Get information about the regridder instance.

        Returns:
            Dictionary containing regridder metadata and configuration
        """
        return {
            "type": "NaturalNeighborRegridder",
            "x_name": self.x_name,
            "y_name": self.y_name,
            "site_dim": self.site_dim,
            "target_dims": [str(dim) for dim in self.target_dims],
            "target_shape": list(self.target_shape),
            "n_valid_targets": int(np.count_nonzero(self.weights.valid)),
            "interpolator": self.interpolator.info(),
        }

    def to_file(self, filepath: str) -> None:
        """Save the regridder (triangulation, target grid, configuration) to a netCDF file.

        Args:
            filepath: Path to save the regridder
        """
        from natural_neighbor.io import _regridder_to_netcdf  # noqa: PLC0415

        _regridder_to_netcdf(self, filepath)

    @classmethod
    def from_file(cls, filepath: str) -> NaturalNeighborRegridder:
        """Load a regridder saved with ``to_file``.

        Args:
            filepath: Path to load the regridder from

        Returns:
            Instance of NaturalNeighborRegridder
        """
        from natural_neighbor.io import _regridder_from_netcdf  # noqa: PLC0415

        config = _regridder_from_netcdf(filepath)
        interpolator_config = config["interpolator_config"]
        interpolator = Interpolator.from_triangulation(
            config["triangulation"],
            degree_limit=interpolator_config["degree_limit"],
            probe_epsilon=interpolator_config["probe_epsilon"],
        )
        return cls(
            interpolator,
            config["target_grid"],
            x_name=config["x_name"],
            y_name=config["y_name"],
            site_dim=config["site_dim"],
        )


@xr.register_dataarray_accessor("nni")
@xr.register_dataset_accessor("nni")
class NaturalNeighborAccessor:
    """Natural neighbor regridding of xarray objects defined on scattered sites.

    The sites are read from the object's own ``x`` and ``y`` coordinates, which
    must lie along a single site dimension.

    Example:
        >>> regridded = data.nni.regrid(target_grid, x="lon", y="lat")
    """

    def __init__(self, xarray_obj: xr.DataArray | xr.Dataset):
        self._obj = xarray_obj

    def build_regridder(
        self,
        target_grid: xr.Dataset,
        x: str = "x",
        y: str = "y",
        **kwargs: Any,
    ) -> NaturalNeighborRegridder:
        """Build a regridder from this object's site coordinates.

        Args:
            target_grid: Dataset containing the target coordinates, named ``x`` and ``y`` too
            x: Name of the x coordinate
            y: Name of the y coordinate
            **kwargs: Passed to NaturalNeighborRegridder.from_sites

        Returns:
            A NaturalNeighborRegridder
        """
        x_coord = self._obj[x]
        y_coord = self._obj[y]
        if x_coord.ndim != 1 or x_coord.dims != y_coord.dims:
            msg = f"Site coordinates '{x}' and '{y}' must share a single dimension"
            raise ValueError(msg)

        site_dim = kwargs.pop("site_dim", x_coord.dims[0])
        return NaturalNeighborRegridder.from_sites(
            x_coord.values, y_coord.values, target_grid, x_name=x, y_name=y, site_dim=site_dim, **kwargs
        )

    def regrid(
        self,
        target_grid: xr.Dataset,
        x: str = "x",
        y: str = "y",
        **kwargs: Any,
    ) -> xr.DataArray | xr.Dataset:
        """Regrid to the target grid with natural neighbor interpolation."""
        regridder = self.build_regridder(target_grid, x=x, y=y, **kwargs)
        return regridder(self._obj)
