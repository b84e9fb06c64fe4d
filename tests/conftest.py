# -*- coding: utf-8 -*-
"""Shared fixtures: sample rasters and points written to a temporary directory."""

import os

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from geoio import create_sample_data, create_sample_points, get_settings, write_raster  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every test in its own directory with default settings."""
    for key in list(os.environ):
        if key.startswith("GEOIO_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_image():
    """A 3-band 10x20 uint16 image in EPSG:32633 with 30 m cells."""
    return create_sample_data(width=20, height=10, bands=3)


@pytest.fixture
def sample_raster_path(tmp_path, sample_image):
    """The sample image written as a GeoTIFF."""
    image_data, transform, crs = sample_image
    return write_raster(str(tmp_path / "sample.tif"), image_data, transform, crs)


@pytest.fixture
def sample_points():
    """Ten random points in EPSG:4326."""
    return create_sample_points(n=10)
