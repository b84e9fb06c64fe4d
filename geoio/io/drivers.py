# -*- coding: utf-8 -*-
"""Driver lookup for vector and raster formats, plus the raster datatype table.

GDAL identifies every format by a driver name. Writers need the name up front,
so it is guessed from the file extension unless the caller passes one.
"""

import os
from collections import namedtuple

import numpy as np
import pandas as pd
import pyogrio
import rasterio
from rasterio.drivers import raster_driver_extensions

from ..errors import DriverError

VECTOR_DRIVERS = {
    ".shp": "ESRI Shapefile",
    ".geojson": "GeoJSON",
    ".json": "GeoJSON",
    ".gpkg": "GPKG",
    ".kml": "KML",
    ".gml": "GML",
    ".gpx": "GPX",
    ".fgb": "FlatGeobuf",
    ".sqlite": "SQLite",
    ".csv": "CSV",
    ".tab": "MapInfo File",
    ".mif": "MapInfo File",
}

RASTER_DRIVERS = {
    ".tif": "GTiff",
    ".tiff": "GTiff",
    ".asc": "AAIGrid",
    ".img": "HFA",
    ".nc": "netCDF",
    ".vrt": "VRT",
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".bil": "EHdr",
    ".rst": "RST",
    ".sdat": "SAGA",
    ".grd": "GSBG",
}

MULTI_LAYER_DRIVERS = {"GPKG", "SQLite", "KML", "GML"}

DELIMITED_TEXT_EXTENSIONS = {".csv", ".txt", ".tsv"}

Datatype = namedtuple("Datatype", ["name", "dtype", "min", "max", "nodata"])

DATATYPES = {
    "LOG1S": Datatype("LOG1S", np.dtype("uint8"), 0, 1, 255),
    "INT1S": Datatype("INT1S", np.dtype("int8"), -127, 127, -128),
    "INT1U": Datatype("INT1U", np.dtype("uint8"), 0, 254, 255),
    "INT2S": Datatype("INT2S", np.dtype("int16"), -32767, 32767, -32768),
    "INT2U": Datatype("INT2U", np.dtype("uint16"), 0, 65534, 65535),
    "INT4S": Datatype("INT4S", np.dtype("int32"), -2147483647, 2147483647, -2147483648),
    "INT4U": Datatype("INT4U", np.dtype("uint32"), 0, 4294967294, 4294967295),
    "FLT4S": Datatype("FLT4S", np.dtype("float32"), -3.4e38, 3.4e38, np.nan),
    "FLT8S": Datatype("FLT8S", np.dtype("float64"), -1.7e308, 1.7e308, np.nan),
}

# LOG1S shares uint8 with INT1U; a plain uint8 array maps to INT1U
_DTYPE_TO_DATATYPE = {dt.dtype: dt for name, dt in DATATYPES.items() if name != "LOG1S"}


def _extension(path):
    return os.path.splitext(str(path))[1].lower()


def guess_vector_driver(path):
    """Return the OGR driver name for a vector file path.

    Parameters:
    -----------
    path : str or os.PathLike
        File path; only the extension is inspected

    Returns:
    --------
    driver : str
        OGR driver name, e.g. "GPKG"
    """
    ext = _extension(path)
    if ext not in VECTOR_DRIVERS:
        raise DriverError(f"Unsupported vector format: '{ext or path}'. Pass a driver explicitly.")
    return VECTOR_DRIVERS[ext]


def guess_raster_driver(path):
    """Return the GDAL driver name for a raster file path.

    Parameters:
    -----------
    path : str or os.PathLike
        File path; only the extension is inspected

    Returns:
    --------
    driver : str
        GDAL driver name, e.g. "GTiff"
    """
    ext = _extension(path)
    if ext not in RASTER_DRIVERS:
        raise DriverError(f"Unsupported raster format: '{ext or path}'. Pass a driver explicitly.")
    return RASTER_DRIVERS[ext]


def is_delimited_text(path):
    """Whether the path points at a delimited text table (csv, tsv, txt)."""
    return _extension(path) in DELIMITED_TEXT_EXTENSIONS


def list_vector_drivers(write=False):
    """List the OGR drivers available in the installed GDAL.

    Parameters:
    -----------
    write : bool
        Only return drivers that can write

    Returns:
    --------
    drivers : pandas.DataFrame
        Columns ``name`` and ``mode`` ("r" or "rw"), sorted by name
    """
    drivers = pyogrio.list_drivers(write=write)
    df = pd.DataFrame(sorted(drivers.items()), columns=["name", "mode"])
    return df.reset_index(drop=True)


def list_raster_drivers():
    """List the GDAL raster drivers available to rasterio.

    Returns:
    --------
    drivers : pandas.DataFrame
        Columns ``name`` and ``description``, sorted by name
    """
    with rasterio.Env() as env:
        all_drivers = env.drivers()

    raster_names = set(raster_driver_extensions().values()) | set(RASTER_DRIVERS.values())
    vector_only = set(pyogrio.list_drivers()) - raster_names

    rows = [(name, description) for name, description in all_drivers.items() if name not in vector_only]
    return pd.DataFrame(sorted(rows), columns=["name", "description"])


def resolve_datatype(datatype):
    """Look up a raster datatype.

    Parameters:
    -----------
    datatype : str or numpy.dtype
        Either a datatype name ("INT2U", case-insensitive) or anything
        ``numpy.dtype`` understands ("uint16", np.float32)

    Returns:
    --------
    datatype : Datatype
        The matching table entry
    """
    if isinstance(datatype, Datatype):
        return datatype

    if isinstance(datatype, str) and datatype.upper() in DATATYPES:
        return DATATYPES[datatype.upper()]

    try:
        dtype = np.dtype(datatype)
    except TypeError as exc:
        raise ValueError(f"Unknown raster datatype: {datatype!r}") from exc

    if dtype not in _DTYPE_TO_DATATYPE:
        raise ValueError(f"Unsupported raster datatype: {dtype}. Choose one of {', '.join(DATATYPES)}")

    return _DTYPE_TO_DATATYPE[dtype]
