# -*- coding: utf-8 -*-
"""Tests for opening, stacking and writing rasters."""

import os

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
import rasterio
from rasterio.enums import Compression
from rasterio.transform import from_origin
from shapely.geometry import box

from geoio import (
    DataSourceExistsError,
    Layer,
    Raster,
    SpatialReferenceError,
    brick,
    get_settings,
    layer_to_raster,
    raster,
    read_raster,
    stack,
    write_raster,
)


def test_read_raster(sample_raster_path, sample_image):
    """read_raster returns the array, transform and CRS."""
    image_data, transform, crs = read_raster(sample_raster_path)
    assert image_data.shape == (3, 10, 20)
    np.testing.assert_array_equal(image_data, sample_image[0])
    assert transform == sample_image[1]
    assert crs.to_epsg() == 32633


def test_read_raster_single_band_is_3d(sample_raster_path):
    """Reading one band still gives a (bands, rows, cols) array."""
    image_data, _, _ = read_raster(sample_raster_path, bands=2)
    assert image_data.shape == (1, 10, 20)


def test_raster_reads_one_band_lazily(sample_raster_path, sample_image):
    """raster() opens a single band and reads values on first access."""
    band = raster(sample_raster_path, band=2)
    assert band.nlayers == 1
    assert band.names == ["sample_2"]
    assert not band.in_memory

    np.testing.assert_array_equal(band.values[0], sample_image[0][1])
    assert band.in_memory


def test_raster_band_out_of_range(sample_raster_path):
    """Bands are 1-based and must exist."""
    with pytest.raises(ValueError):
        raster(sample_raster_path, band=4)
    with pytest.raises(ValueError):
        raster(sample_raster_path, band=0)


def test_raster_missing_file(tmp_path):
    """Missing files raise FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        raster(str(tmp_path / "missing.tif"))


def test_brick_geometry(sample_raster_path):
    """brick() exposes all bands with the grid's dimensions and extent."""
    b = brick(sample_raster_path)
    assert b.nlayers == 3
    assert (b.nrow, b.ncol, b.ncell) == (10, 20, 200)
    assert b.res == (30.0, 30.0)
    assert tuple(b.extent) == (500000.0, 4650000.0 - 300.0, 500000.0 + 600.0, 4650000.0)
    assert b.dtype == np.dtype("uint16")
    assert "dimensions : 10, 20, 200, 3" in repr(b)


def test_brick_in_memory(sample_raster_path):
    """in_memory reads the values immediately."""
    assert brick(sample_raster_path, in_memory=True).in_memory


def test_read_into_memory_setting(sample_raster_path, monkeypatch):
    """The read_into_memory setting changes the default."""
    monkeypatch.setenv("GEOIO_READ_INTO_MEMORY", "true")
    get_settings.cache_clear()
    assert brick(sample_raster_path).in_memory


def test_brick_rejects_several_files(sample_raster_path):
    """Several files belong in a stack."""
    with pytest.raises(TypeError):
        brick([sample_raster_path, sample_raster_path])


def test_select_layers_by_name_and_index(sample_raster_path, sample_image):
    """Layers can be picked by name or index, lazily."""
    b = brick(sample_raster_path)
    subset = b[["sample_3", 0]]
    assert subset.names == ["sample_3", "sample_1"]
    assert not subset.in_memory
    np.testing.assert_array_equal(subset.values, sample_image[0][[2, 0]])

    assert b[-1].names == ["sample_3"]
    with pytest.raises(KeyError):
        b["nope"]
    with pytest.raises(IndexError):
        b[3]


def test_stack_files_and_rasters(tmp_path, sample_raster_path, sample_image):
    """stack() combines every band of every item, keeping names unique."""
    image_data, transform, crs = sample_image
    other_path = write_raster(str(tmp_path / "other.tif"), image_data + 1, transform, crs)

    s = stack(sample_raster_path, other_path)
    assert s.nlayers == 6
    assert s.names[3:] == ["other_1", "other_2", "other_3"]
    np.testing.assert_array_equal(s.values[3:], image_data + 1)

    again = stack([sample_raster_path, raster(sample_raster_path, band=1)])
    assert again.nlayers == 4
    assert len(set(again.names)) == 4
    np.testing.assert_array_equal(again.values[3], image_data[0])


def test_stack_requires_same_grid(tmp_path, sample_raster_path, sample_image):
    """Rasters with another extent cannot be stacked."""
    image_data, _, crs = sample_image
    shifted = write_raster(str(tmp_path / "shifted.tif"), image_data, from_origin(0, 0, 30, 30), crs)

    with pytest.raises(ValueError):
        stack(sample_raster_path, shifted)


def test_stack_requires_same_crs(tmp_path, sample_raster_path, sample_image):
    """Rasters in another CRS cannot be stacked."""
    image_data, transform, _ = sample_image
    other = write_raster(str(tmp_path / "utm32.tif"), image_data, transform, "EPSG:32632")

    with pytest.raises(SpatialReferenceError):
        stack(sample_raster_path, other)


def test_stack_unifies_different_nodata():
    """Different nodata values are converted to NaN on a float array."""
    transform = from_origin(0, 2, 1, 1)
    a = Raster(values=np.array([[0, 1], [2, 3]], dtype=np.uint16), transform=transform, nodata=0, names=["a"])
    b = Raster(values=np.array([[9, 1], [2, 3]], dtype=np.uint16), transform=transform, nodata=9, names=["b"])

    s = stack(a, b)
    assert s.dtype == np.dtype("float64")
    assert np.isnan(s.nodata)
    assert np.isnan(s.values[0, 0, 0]) and np.isnan(s.values[1, 0, 0])
    assert s.values[1, 1, 1] == 3


def test_stack_needs_items():
    """An empty stack is an error."""
    with pytest.raises(ValueError):
        stack()


def test_write_raster_refuses_existing_file(sample_raster_path, sample_image):
    """Existing files are only replaced with overwrite."""
    image_data, transform, crs = sample_image
    with pytest.raises(DataSourceExistsError):
        write_raster(sample_raster_path, image_data, transform, crs)

    write_raster(sample_raster_path, image_data[:1], transform, crs, overwrite=True)
    assert brick(sample_raster_path).nlayers == 1


def test_overwrite_setting(sample_raster_path, sample_image, monkeypatch):
    """The overwrite setting changes the default."""
    monkeypatch.setenv("GEOIO_OVERWRITE", "1")
    get_settings.cache_clear()
    image_data, transform, crs = sample_image
    write_raster(sample_raster_path, image_data, transform, crs)


def test_write_raster_needs_transform_for_arrays(tmp_path):
    """Plain arrays carry no georeferencing of their own."""
    with pytest.raises(ValueError):
        write_raster(str(tmp_path / "a.tif"), np.zeros((2, 2)))


def test_write_raster_datatype_conversion(tmp_path):
    """Integer datatypes round values and send out-of-range cells to nodata."""
    data = np.array([[-5.0, 10.2], [300.0, np.nan]])
    path = str(tmp_path / "small.tif")

    with pytest.warns(UserWarning, match="outside the INT1U range"):
        write_raster(path, data, transform=from_origin(0, 2, 1, 1), datatype="INT1U")

    with rasterio.open(path) as src:
        assert src.dtypes[0] == "uint8"
        assert src.nodata == 255
        np.testing.assert_array_equal(src.read(1), [[255, 10], [255, 255]])


def test_write_raster_float_datatype(tmp_path, sample_raster_path):
    """FLT4S writes float32 with NaN as nodata."""
    path = write_raster(str(tmp_path / "float.tif"), raster(sample_raster_path), datatype="FLT4S")

    with rasterio.open(path) as src:
        assert src.dtypes[0] == "float32"
        assert np.isnan(src.nodata)


def test_write_raster_keeps_source_nodata(tmp_path):
    """Masked cells of a Raster keep their meaning under a new datatype."""
    r = Raster(values=np.array([[-1, 5]], dtype=np.int16), transform=from_origin(0, 1, 1, 1), nodata=-1)
    path = write_raster(str(tmp_path / "masked.tif"), r, datatype="INT2U")

    with rasterio.open(path) as src:
        assert src.nodata == 65535
        np.testing.assert_array_equal(src.read(1), [[65535, 5]])


def test_write_raster_compression(tmp_path, sample_image):
    """GeoTIFFs are deflate-compressed unless other options are given."""
    image_data, transform, crs = sample_image
    default = write_raster(str(tmp_path / "default.tif"), image_data, transform, crs)
    lzw = write_raster(str(tmp_path / "lzw.tif"), image_data, transform, crs, options=["COMPRESS=LZW"])

    with rasterio.open(default) as src:
        assert src.compression == Compression.deflate
    with rasterio.open(lzw) as src:
        assert src.compression == Compression.lzw


def test_write_raster_rejects_malformed_options(tmp_path, sample_image):
    """Creation options must be KEY=VALUE pairs."""
    image_data, transform, crs = sample_image
    with pytest.raises(ValueError):
        write_raster(str(tmp_path / "bad.tif"), image_data, transform, crs, options=["COMPRESS"])


def test_band_names_round_trip(tmp_path, sample_raster_path):
    """Layer names are stored as GeoTIFF band descriptions."""
    path = write_raster(str(tmp_path / "named.tif"), brick(sample_raster_path), names=["blue", "green", "red"])
    assert brick(path).names == ["blue", "green", "red"]

    with pytest.raises(ValueError):
        write_raster(str(tmp_path / "bad.tif"), brick(sample_raster_path), names=["one"])


def test_write_ascii_grid(tmp_path):
    """Other GDAL formats are chosen from the extension."""
    data = np.arange(12, dtype=np.float32).reshape(3, 4)
    path = write_raster(str(tmp_path / "grid.asc"), data, transform=from_origin(0, 3, 1, 1), nodata=-9999)

    with rasterio.open(path) as src:
        assert src.driver == "AAIGrid"
        np.testing.assert_array_equal(src.read(1), data)


def test_layer_to_raster_numeric_column(tmp_path):
    """Vector features are burned into a grid using a numeric column."""
    layer = Layer(name="zones")
    layer.objects = gpd.GeoDataFrame(
        {"value": [1, 2]},
        geometry=[box(0, 0, 100, 100), box(100, 0, 200, 100)],
        crs="EPSG:32633",
    )
    path = layer_to_raster(layer, str(tmp_path / "zones.tif"), column="value", resolution=10)

    with rasterio.open(path) as src:
        assert (src.height, src.width) == (10, 20)
        values = src.read(1)
        assert values[5, 5] == 1
        assert values[5, 15] == 2
        assert src.crs.to_epsg() == 32633


def test_layer_to_raster_categorical_column(tmp_path):
    """Categories are coded 1, 2, ... so they never collide with nodata 0."""
    layer = Layer(name="landcover")
    layer.objects = gpd.GeoDataFrame(
        {"cls": ["water", "forest"]},
        geometry=[box(0, 0, 50, 50), box(50, 0, 100, 50)],
        crs="EPSG:32633",
    )
    path = layer_to_raster(layer, str(tmp_path / "landcover.tif"), column="cls", resolution=10)
    assert set(np.unique(read_raster(path)[0])) == {1, 2}


def test_layer_to_raster_raster_layer(tmp_path, sample_raster_path):
    """Raster layers are written as they are."""
    layer = brick(sample_raster_path).to_layer()
    path = layer_to_raster(layer, str(tmp_path / "copy.tif"))
    assert os.path.exists(path)
    assert brick(path).nlayers == 3

    with pytest.raises(ValueError):
        layer_to_raster(Layer(name="empty"), str(tmp_path / "empty.tif"))


def test_layer_to_raster_string_dtype_column(tmp_path):
    """Categories stored with the pandas string dtype are coded like object columns."""
    layer = Layer(name="soils")
    layer.objects = gpd.GeoDataFrame(
        {"soil": pd.array(["clay", "sand", "clay"], dtype="string")},
        geometry=[box(0, 0, 10, 10), box(10, 0, 20, 10), box(20, 0, 30, 10)],
        crs="EPSG:32633",
    )
    path = layer_to_raster(layer, str(tmp_path / "soils.tif"), column="soil", resolution=10)
    np.testing.assert_array_equal(read_raster(path)[0][0], [[1, 2, 1]])


def test_layer_to_raster_default_resolution(tmp_path):
    """Without a resolution the grid uses 10 CRS units per cell."""
    layer = Layer(name="zones")
    layer.objects = gpd.GeoDataFrame({"v": [1]}, geometry=[box(0, 0, 100, 50)], crs="EPSG:32633")
    path = layer_to_raster(layer, str(tmp_path / "zones.tif"), column="v", resolution=None)

    with rasterio.open(path) as src:
        assert src.res == (10.0, 10.0)
        assert (src.height, src.width) == (5, 10)


def test_layer_to_raster_resolution_from_parent_grid(tmp_path, sample_raster_path):
    """A vector layer derived from a raster layer is rasterized on that raster's cell size."""
    parent = brick(sample_raster_path).to_layer(name="image")
    layer = Layer(name="fields", parent=parent)
    layer.objects = gpd.GeoDataFrame({"v": [3]}, geometry=[box(500000, 4649700, 500600, 4650000)], crs="EPSG:32633")
    path = layer_to_raster(layer, str(tmp_path / "fields.tif"), column="v")

    with rasterio.open(path) as src:
        assert src.res == (30.0, 30.0)
        assert (src.height, src.width) == (10, 20)


def test_raster_needs_values_or_sources():
    """A Raster with nothing to hold or read is rejected."""
    with pytest.raises(ValueError):
        Raster()


def test_raster_names_one_per_layer():
    """There must be exactly one name per layer."""
    with pytest.raises(ValueError):
        Raster(values=np.zeros((2, 3, 3)), names=["only_one"])


def test_raster_names_unique():
    """Layer names cannot repeat."""
    with pytest.raises(ValueError):
        Raster(values=np.zeros((2, 3, 3)), names=["b", "b"])


def test_raster_2d_values_become_one_layer():
    """A 2-D array is a single-layer raster."""
    r = Raster(values=np.arange(6).reshape(2, 3))
    assert r.shape == (1, 2, 3)
    assert r.names == ["layer_1"]


def test_raster_masked():
    """masked() hides nodata and NaN cells."""
    r = Raster(values=np.array([[-1.0, 2.0], [np.nan, 4.0]]), nodata=-1)
    masked = r.masked()
    np.testing.assert_array_equal(masked.mask[0], [[True, False], [True, False]])
    assert masked.sum() == 6.0


def test_raster_copy_owns_its_values():
    """Changing a copy's values leaves the original alone."""
    r = Raster(values=np.zeros((1, 2, 2)), names=["a"])
    dup = r.copy()
    dup.values[0, 0, 0] = 5
    assert r.values[0, 0, 0] == 0
    assert dup.names == ["a"]


def test_raster_copy_stays_lazy(sample_raster_path):
    """Copying a lazily read raster does not read it."""
    dup = brick(sample_raster_path).copy()
    assert not dup.in_memory
    assert dup.sources == brick(sample_raster_path).sources
