# -*- coding: utf-8 -*-
"""Helpers for sample data, band statistics and layer summaries."""

import json
import os

import geopandas as gpd
import numpy as np
from rasterio.crs import CRS
from rasterio.transform import from_origin


def create_sample_data(width=64, height=48, bands=4, res=30.0, origin=(500000.0, 4650000.0), crs="EPSG:32633", seed=42):
    """Create a synthetic multi-band (B, G, R, NIR by default) image for testing.

    Each band is a smooth gradient plus noise, scaled like 16-bit reflectance.

    Parameters:
    -----------
    width, height : int
        Image size in cells
    bands : int
        Number of bands
    res : float
        Cell size in CRS units
    origin : tuple of float
        (x, y) of the upper-left corner
    crs : str
        Coordinate reference system
    seed : int
        Seed for the noise

    Returns:
    --------
    image_data : numpy.ndarray
        Synthetic image data as uint16 (bands, rows, cols)
    transform : affine.Affine
        Affine transformation for the raster
    crs : rasterio.crs.CRS
        Coordinate reference system
    """
    rng = np.random.default_rng(seed)
    rows, cols = np.mgrid[0:height, 0:width]
    gradient = (rows / max(height - 1, 1) + cols / max(width - 1, 1)) / 2

    image_data = np.empty((bands, height, width), dtype=np.uint16)
    for b in range(bands):
        signal = 1000 + 3000 * gradient * (b + 1) / bands
        noise = rng.normal(0, 50, size=(height, width))
        image_data[b] = np.clip(signal + noise, 0, 10000).astype(np.uint16)

    transform = from_origin(origin[0], origin[1], res, res)
    return image_data, transform, CRS.from_user_input(crs)


def create_sample_points(n=10, bounds=(-10.0, 35.0, 30.0, 60.0), crs="EPSG:4326", seed=42):
    """Create random points with a few attributes.

    Returns:
    --------
    gdf : geopandas.GeoDataFrame
        Columns id, name, value and geometry
    """
    rng = np.random.default_rng(seed)
    minx, miny, maxx, maxy = bounds
    xs = rng.uniform(minx, maxx, n)
    ys = rng.uniform(miny, maxy, n)

    return gpd.GeoDataFrame(
        {
            "id": np.arange(1, n + 1),
            "name": [f"point_{i + 1}" for i in range(n)],
            "value": np.round(rng.uniform(0, 100, n), 2),
        },
        geometry=gpd.points_from_xy(xs, ys),
        crs=crs,
    )


def calculate_statistics_summary(layer_manager, output_file=None):
    """Summarize all layers in a layer manager.

    Parameters:
    -----------
    layer_manager : LayerManager
        Layer manager containing layers
    output_file : str, optional
        Path to save the summary to (as JSON)

    Returns:
    --------
    summary : dict
        Dictionary with one entry per layer
    """
    summary = {}

    for layer_name in layer_manager.get_layer_names():
        layer = layer_manager.get_layer(layer_name)

        layer_summary = {
            "type": layer.type,
            "created_at": str(layer.created_at),
            "source": layer.source,
            "driver": layer.driver,
            "crs": layer.crs.to_string() if layer.crs else None,
            "bounds": [float(v) for v in layer.bounds] if layer.bounds else None,
        }

        if layer.objects is not None:
            layer_summary["feature_count"] = len(layer.objects)
            layer_summary["geometry_types"] = sorted(str(t) for t in layer.objects.geom_type.dropna().unique())
            layer_summary["columns"] = [str(c) for c in layer.objects.columns if c != layer.objects.geometry.name]

        if layer.raster is not None:
            layer_summary["bands"] = layer.raster.names
            layer_summary["shape"] = list(layer.raster.shape)
            layer_summary["res"] = list(layer.raster.res)
            layer_summary["dtype"] = str(layer.raster.dtype)

        summary[layer_name] = layer_summary

    if output_file:
        parent = os.path.dirname(output_file)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output_file, "w") as f:
            json.dump(summary, f, indent=2)

    return summary


def get_band_statistics(image_data, band_names=None, nodata=None):
    """Calculate statistics for each band in a raster image.

    Parameters:
    -----------
    image_data : numpy.ndarray or Raster
        Raster image data (bands, height, width)
    band_names : list of str, optional
        Names of the bands. Defaults to the Raster's names or Band_1, Band_2, ...
    nodata : int or float, optional
        Value excluded from the statistics, in addition to NaN

    Returns:
    --------
    stats : dict
        Dictionary with band statistics
    """
    if hasattr(image_data, "masked"):
        band_names = band_names or image_data.names
        nodata = image_data.nodata if nodata is None else nodata
        image_data = image_data.values

    image_data = np.asarray(image_data)
    if image_data.ndim == 2:
        image_data = image_data.reshape(1, *image_data.shape)

    num_bands = image_data.shape[0]

    if band_names is None:
        band_names = [f"Band_{i + 1}" for i in range(num_bands)]

    stats = {}

    for i, band_name in enumerate(band_names):
        if i >= num_bands:
            break

        band_data = image_data[i].astype(np.float64).ravel()
        valid = ~np.isnan(band_data)
        if nodata is not None and not np.isnan(nodata):
            valid &= band_data != nodata
        band_data = band_data[valid]

        if band_data.size == 0:
            stats[band_name] = {"count": 0}
            continue

        stats[band_name] = {
            "count": int(band_data.size),
            "min": float(np.min(band_data)),
            "max": float(np.max(band_data)),
            "mean": float(np.mean(band_data)),
            "std": float(np.std(band_data)),
            "median": float(np.median(band_data)),
            "percentile_5": float(np.percentile(band_data, 5)),
            "percentile_95": float(np.percentile(band_data, 95)),
        }

    return stats


def memory_usage(obj):
    """Estimate memory usage of a layer, raster or GeoDataFrame in MB.

    Lazily read rasters report what their values will take once loaded.

    Parameters:
    -----------
    obj : Layer, Raster or geopandas.GeoDataFrame
        Object to measure

    Returns:
    --------
    memory_mb : float
        Estimated memory usage in MB
    """
    memory = 0

    raster = getattr(obj, "raster", None)
    objects = getattr(obj, "objects", None)
    if hasattr(obj, "nlayers"):
        raster = obj
    if isinstance(obj, gpd.GeoDataFrame):
        objects = obj

    if raster is not None:
        memory += raster.ncell * raster.nlayers * raster.dtype.itemsize

    if objects is not None:
        memory += int(objects.memory_usage(deep=True, index=True).sum())
        memory += int(objects.geometry.apply(lambda g: len(g.wkb) if g is not None else 0).sum())

    memory_mb = memory / (1024 * 1024)

    return memory_mb
