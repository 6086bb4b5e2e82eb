"""
Tests for xarray regridding with natural neighbor weights.
"""

import dask.array as da
import numpy as np
import pytest
import xarray as xr
from xarray.testing import assert_allclose

import natural_neighbor  # noqa: F401
from natural_neighbor import NaturalNeighborRegridder


def _linear(x, y):
    return 2.0 * x + 3.0 * y + 1.0


@pytest.fixture
def stations():
    """Scattered sites covering [0, 10] x [0, 10], with a linear field and a time axis."""
    rng = np.random.default_rng(11)
    xy = np.vstack([rng.uniform(0.0, 10.0, size=(80, 2)), [[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]]])
    x, y = xy[:, 0], xy[:, 1]
    scale = np.array([1.0, 2.0, 3.0])
    data = scale[:, None] * _linear(x, y)[None, :]
    return xr.DataArray(
        data,
        dims=("time", "site"),
        coords={"time": np.arange(3), "x": ("site", x), "y": ("site", y)},
        name="temperature",
        attrs={"units": "K"},
    )


@pytest.fixture
def target_grid():
    return xr.Dataset(coords={"x": np.linspace(1.0, 9.0, 5), "y": np.linspace(0.5, 9.5, 4)})


def test_regrid_dataarray(stations, target_grid):
    """A linear field is reproduced on a rectilinear target grid."""
    regridder = NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid)
    result = regridder(stations)

    assert result.dims == ("time", "y", "x")
    assert result.shape == (3, 4, 5)
    assert result.attrs["units"] == "K"
    assert "Regridded using NaturalNeighborRegridder" in result.attrs["history"]
    assert "site" not in result.coords

    xx, yy = np.meshgrid(target_grid["x"].values, target_grid["y"].values)
    for i, scale in enumerate([1.0, 2.0, 3.0]):
        np.testing.assert_allclose(result.isel(time=i).values, scale * _linear(xx, yy), atol=1e-6)


def test_regrid_dask_is_lazy(stations, target_grid):
    """Dask-backed inputs stay lazy and compute to the eager result."""
    regridder = NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid)
    expected = regridder(stations)

    lazy = regridder(stations.chunk({"time": 1}))
    assert isinstance(lazy.data, da.Array)
    assert_allclose(lazy.compute(), expected)


def test_regrid_dataset(stations, target_grid):
    """Variables on the site dimension are regridded, others are passed through."""
    dataset = xr.Dataset({"temperature": stations, "offset": ("time", np.arange(3.0))}, attrs={"title": "stations"})
    regridder = NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid)
    result = regridder(dataset)

    assert result.attrs["title"] == "stations"
    assert result["temperature"].dims == ("time", "y", "x")
    assert result["offset"].dims == ("time",)
    np.testing.assert_allclose(result["x"].values, target_grid["x"].values)


def test_regrid_curvilinear_target(stations):
    """2D target coordinates are used as is."""
    lon, lat = np.meshgrid(np.linspace(2.0, 8.0, 6), np.linspace(3.0, 7.0, 3))
    target_grid = xr.Dataset(coords={"lon": (("j", "i"), lon + 0.1 * lat), "lat": (("j", "i"), lat)})

    regridder = NaturalNeighborRegridder.from_sites(
        stations["x"], stations["y"], target_grid, x_name="lon", y_name="lat"
    )
    result = regridder(stations.isel(time=0))

    assert result.dims == ("j", "i")
    np.testing.assert_allclose(result.values, _linear(target_grid["lon"].values, target_grid["lat"].values), atol=1e-6)


def test_regrid_outside_hull_is_nan(stations):
    """Targets outside the convex hull of the sites are NaN."""
    target_grid = xr.Dataset(coords={"x": [5.0, 20.0], "y": [5.0]})
    regridder = NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid)
    result = regridder(stations.isel(time=0))

    assert np.isfinite(result.sel(x=5.0, y=5.0))
    assert np.isnan(result.sel(x=20.0, y=5.0))


def test_regrid_warns_without_coverage(stations):
    """Test that a warning is emitted when no target is inside the hull."""
    target_grid = xr.Dataset(coords={"x": [20.0, 30.0], "y": [-5.0]})
    with pytest.warns(UserWarning, match="convex hull"):
        NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid)


def test_regrid_errors(stations, target_grid):
    """Test the validation of inputs."""
    regridder = NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid)

    with pytest.raises(TypeError):
        regridder(stations.values)
    with pytest.raises(ValueError):
        regridder(xr.DataArray(stations.values, dims=("time", "station")))
    with pytest.raises(ValueError):
        regridder(stations.isel(site=slice(0, 10)))
    with pytest.raises(ValueError):
        NaturalNeighborRegridder(regridder.interpolator, target_grid, x_name="lon")
    with pytest.raises(TypeError):
        NaturalNeighborRegridder(regridder.interpolator, target_grid["x"])


def test_accessor(stations, target_grid):
    """The ``.nni`` accessor reads sites from the object's coordinates."""
    regridder = NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid)
    expected = regridder(stations)

    assert_allclose(stations.nni.regrid(target_grid), expected)
    assert_allclose(stations.to_dataset().nni.regrid(target_grid)["temperature"], expected)


def test_accessor_requires_site_dimension(target_grid):
    """Test that the accessor rejects gridded site coordinates."""
    data = xr.DataArray(
        np.zeros((2, 2)),
        dims=("a", "b"),
        coords={"x": (("a", "b"), np.zeros((2, 2))), "y": (("a", "b"), np.zeros((2, 2)))},
    )
    with pytest.raises(ValueError):
        data.nni.regrid(target_grid)


def test_regridder_info(stations, target_grid):
    """Test that info describes the regridder and its interpolator."""
    regridder = NaturalNeighborRegridder.from_sites(stations["x"], stations["y"], target_grid, degree_limit=40)
    info = regridder.info()

    assert info["type"] == "NaturalNeighborRegridder"
    assert info["site_dim"] == "site"
    assert info["target_dims"] == ["y", "x"]
    assert info["target_shape"] == [4, 5]
    assert info["n_valid_targets"] == 20
    assert info["interpolator"]["degree_limit"] == 40
    assert info["interpolator"]["n_sites"] == 84
