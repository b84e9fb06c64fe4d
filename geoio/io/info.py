# -*- coding: utf-8 -*-
"""Summaries of data sources, in the spirit of gdalinfo and ogrinfo."""

import logging
import os

import geopandas as gpd
import pyogrio
import rasterio
from pyogrio.errors import DataSourceError
from rasterio.errors import RasterioIOError

from ..errors import DriverError
from .drivers import RASTER_DRIVERS, VECTOR_DRIVERS, is_delimited_text
from .vector import list_layers, read_vector

logger = logging.getLogger(__name__)


def detect_kind(path):
    """Tell whether a path holds raster or vector data.

    The extension decides when it is known; otherwise the file is probed with
    rasterio first, then with pyogrio.

    Parameters:
    -----------
    path : str
        Path to the data source

    Returns:
    --------
    kind : str
        "raster" or "vector"
    """
    ext = os.path.splitext(str(path))[1].lower()
    if ext in RASTER_DRIVERS:
        return "raster"
    if ext in VECTOR_DRIVERS or is_delimited_text(path):
        return "vector"

    try:
        with rasterio.open(path):
            return "raster"
    except RasterioIOError:
        logger.debug("%s is not a raster, trying vector drivers", path)

    try:
        pyogrio.read_info(path)
        return "vector"
    except DataSourceError as exc:
        raise DriverError(f"No raster or vector driver can open {path}") from exc


def describe(path):
    """Describe a raster or vector data source.

    Parameters:
    -----------
    path : str
        Path to the data source

    Returns:
    --------
    info : dict
        For rasters: kind, driver, width, height, count, dtype, nodata, crs,
        res and bounds. For vectors: kind, driver and layers (a list of dicts
        as returned by list_layers).
    """
    if not os.path.exists(str(path)):
        raise FileNotFoundError(f"Data source not found: {path}")

    kind = detect_kind(path)

    if kind == "raster":
        with rasterio.open(path) as src:
            return {
                "kind": "raster",
                "driver": src.driver,
                "width": src.width,
                "height": src.height,
                "count": src.count,
                "dtype": src.dtypes[0],
                "nodata": src.nodata,
                "crs": src.crs.to_string() if src.crs else None,
                "res": src.res,
                "bounds": tuple(src.bounds),
            }

    if is_delimited_text(path):
        # one layer, as read_vector sees it
        table = read_vector(path)
        spatial = isinstance(table, gpd.GeoDataFrame)
        geometry_types = table.geom_type.dropna().unique() if spatial else []
        layer = {
            "name": os.path.splitext(os.path.basename(str(path)))[0],
            "geometry_type": str(geometry_types[0]) if len(geometry_types) == 1 else None,
            "features": len(table),
            "fields": len(table.columns) - (1 if spatial else 0),
            "crs": None,
        }
        return {"kind": "vector", "driver": "CSV", "layers": [layer]}

    info = pyogrio.read_info(path)
    return {
        "kind": "vector",
        "driver": info.get("driver", VECTOR_DRIVERS.get(os.path.splitext(str(path))[1].lower())),
        "layers": list_layers(path).to_dict("records"),
    }
