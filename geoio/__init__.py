# -*- coding: utf-8 -*-
# geoio/__init__.py

"""
geoio: Reading and writing geographic vector and raster data
=========================================================================

geoio is a thin Python layer over GDAL (through geopandas/pyogrio and rasterio)
for getting spatial data in and out of files.

Key features:
- Vector input/output with driver detection, layer listing and overwrite control
- Delimited text with coordinate or WKT columns
- Lazy single-band, multi-band (brick) and stacked rasters
- Raster output with explicit datatypes and creation options
- Open data downloads and map image export
"""

import logging

__version__ = "0.1.0"

from .config import GeoIOSettings, get_settings, setup_logging
from .errors import DataSourceExistsError, DriverError, SpatialReferenceError

from .core.layer import Layer, LayerManager
from .core.raster import Raster

from .io.download import download_and_extract, download_file, extract_archive
from .io.drivers import (
    DATATYPES,
    guess_raster_driver,
    guess_vector_driver,
    list_raster_drivers,
    list_vector_drivers,
    resolve_datatype,
)
from .io.info import describe
from .io.raster import brick, layer_to_raster, raster, read_raster, stack, write_raster
from .io.vector import layer_to_vector, list_layers, read_vector, write_vector

from .utils.helpers import (
    calculate_statistics_summary,
    create_sample_data,
    create_sample_points,
    get_band_statistics,
    memory_usage,
)

from .viz.maps import plot_layer, plot_raster, plot_vector, save_map

logging.getLogger(__name__).addHandler(logging.NullHandler())
