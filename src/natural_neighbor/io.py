"""
I/O functions for natural-neighbor.

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

import json
from typing import TYPE_CHECKING, Any

import numpy as np
import xarray as xr

from natural_neighbor.constants import CONFIG_ATTR, EDGE_DIM, FILE_FORMAT_VERSION, SITE_DIM
from natural_neighbor.triangulation import Triangulation

if TYPE_CHECKING:
    from natural_neighbor.interpolation.core import Interpolator
    from natural_neighbor.regrid import NaturalNeighborRegridder


def _interpolator_to_dataset(interpolator: Interpolator) -> xr.Dataset:
    """Describe an interpolator's triangulation and configuration as a Dataset."""
    triangulation = interpolator.triangulation
    dataset = xr.Dataset(
        {
            "x": ((SITE_DIM,), triangulation.points[:, 0]),
            "y": ((SITE_DIM,), triangulation.points[:, 1]),
            "triangles": ((EDGE_DIM,), triangulation.triangles),
            "halfedges": ((EDGE_DIM,), triangulation.halfedges),
        }
    )
    config = {
        "format_version": FILE_FORMAT_VERSION,
        "degree_limit": interpolator.degree_limit,
        "probe_epsilon": interpolator.probe_epsilon,
    }
    dataset.attrs[CONFIG_ATTR] = json.dumps(config)
    return dataset


def _interpolator_from_dataset(dataset: xr.Dataset) -> tuple[Triangulation, dict[str, Any]]:
    """Rebuild the triangulation and configuration stored by ``_interpolator_to_dataset``."""
    config_str = dataset.attrs.get(CONFIG_ATTR)
    if not config_str:
        raise ValueError(f"{CONFIG_ATTR} attribute not found in the file.")
    config = json.loads(config_str)

    if config.get("format_version", FILE_FORMAT_VERSION) > FILE_FORMAT_VERSION:
        msg = f"File format version {config['format_version']} is newer than supported ({FILE_FORMAT_VERSION})"
        raise ValueError(msg)

    points = np.column_stack([dataset["x"].values, dataset["y"].values])
    triangulation = Triangulation.from_arrays(points, dataset["triangles"].values, dataset["halfedges"].values)
    return triangulation, config


def _interpolator_to_netcdf(interpolator: Interpolator, filepath: str, group: str | None = None) -> None:
    """Write interpolator to a netCDF file."""
    mode = "w" if group is None else "a"
    _interpolator_to_dataset(interpolator).to_netcdf(filepath, mode=mode, group=group, engine="h5netcdf")


def _interpolator_from_netcdf(filepath: str, group: str | None = None) -> tuple[Triangulation, dict[str, Any]]:
    """Read interpolator from a netCDF file."""
    with xr.open_dataset(filepath, group=group, engine="h5netcdf") as ds:
        return _interpolator_from_dataset(ds.load())


def _regridder_to_netcdf(regridder: NaturalNeighborRegridder, filepath: str) -> None:
    """Write regridder to a netCDF file."""
    regridder.target_grid.to_netcdf(filepath, mode="w", group="target_grid", engine="h5netcdf")
    _interpolator_to_netcdf(regridder.interpolator, filepath, group="interpolator")

    regridder_config = xr.Dataset()
    info = regridder.info()
    regridder_config.attrs["regridder_config"] = json.dumps(
        {key: info[key] for key in ("x_name", "y_name", "site_dim")}
    )
    regridder_config.to_netcdf(filepath, mode="a", group="regridder_config", engine="h5netcdf")


def _regridder_from_netcdf(filepath: str) -> dict[str, Any]:
    """Read regridder from a netCDF file."""
    with xr.open_dataset(filepath, group="regridder_config", engine="h5netcdf") as ds:
        config_str = ds.attrs.get("regridder_config")
        if not config_str:
            raise ValueError("regridder_config attribute not found in the file.")
        regridder_config = json.loads(config_str)

    with xr.open_dataset(filepath, group="target_grid", engine="h5netcdf") as ds:
        target_grid = ds.load()

    triangulation, interpolator_config = _interpolator_from_netcdf(filepath, group="interpolator")

    regridder_config.update(
        {
            "triangulation": triangulation,
            "interpolator_config": interpolator_config,
            "target_grid": target_grid,
        }
    )
    return regridder_config
