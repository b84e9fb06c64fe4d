# -*- coding: utf-8 -*-
"""Manages vector data I/O, supporting Shapefile, GeoJSON, GeoPackage, delimited text and any other OGR format.

This module offers utilities for listing the layers of a data source, reading them with attribute and spatial
filters, and writing them back with explicit control over what happens to data that is already on disk.
"""

import glob
import logging
import os

import geopandas as gpd
import pandas as pd
import pyogrio
from pyproj import CRS

from ..errors import DataSourceExistsError, DriverError, SpatialReferenceError
from .drivers import MULTI_LAYER_DRIVERS, guess_vector_driver, is_delimited_text

logger = logging.getLogger(__name__)

X_CANDIDATES = ("x", "lon", "lng", "long", "longitude", "easting")
Y_CANDIDATES = ("y", "lat", "latitude", "northing")
WKT_CANDIDATES = ("wkt", "geometry", "geom", "the_geom")

SHAPEFILE_SIDECARS = (".shp", ".shx", ".dbf", ".prj", ".cpg", ".qix", ".sbn", ".sbx", ".shp.xml")


def _is_local(path):
    path = str(path)
    return "://" not in path and not path.startswith("/vsi")


def _ensure_parent_dir(path):
    parent = os.path.dirname(str(path))
    if parent:
        os.makedirs(parent, exist_ok=True)


def _find_column(columns, candidates):
    lookup = {str(c).lower(): c for c in columns}
    for candidate in candidates:
        if candidate in lookup:
            return lookup[candidate]
    return None


def _read_delimited(vector_path, x=None, y=None, wkt=None, crs=None, bbox=None, columns=None, **options):
    sep = options.pop("sep", "\t" if str(vector_path).lower().endswith(".tsv") else ",")
    df = pd.read_csv(vector_path, sep=sep, **options)

    if (x is None) != (y is None):
        raise ValueError("x and y must be given together")

    if x is None and y is None and wkt is None:
        wkt = _find_column(df.columns, WKT_CANDIDATES)
        if wkt is None:
            x = _find_column(df.columns, X_CANDIDATES)
            y = _find_column(df.columns, Y_CANDIDATES)

    if wkt is not None:
        if wkt not in df.columns:
            raise ValueError(f"Column '{wkt}' not found in {vector_path}")
        geometry = gpd.GeoSeries.from_wkt(df[wkt], crs=crs)
        df = df.drop(columns=[wkt])
    elif x is not None and y is not None:
        missing = [c for c in (x, y) if c not in df.columns]
        if missing:
            raise ValueError(f"Column(s) {missing} not found in {vector_path}")
        geometry = gpd.points_from_xy(df[x], df[y], crs=crs)
    else:
        logger.warning("No geometry columns found in %s; returning a plain DataFrame", vector_path)
        return df[list(columns)] if columns is not None else df

    if columns is not None:
        df = df[list(columns)]

    gdf = gpd.GeoDataFrame(df, geometry=geometry, crs=crs)

    if bbox is not None:
        minx, miny, maxx, maxy = bbox
        gdf = gdf.cx[minx:maxx, miny:maxy]

    return gdf


def read_vector(vector_path, layer=None, bbox=None, where=None, columns=None, x=None, y=None, wkt=None, crs=None, **options):
    """Read a vector file into a GeoDataFrame.

    Parameters:
    -----------
    vector_path : str
        Path (or URL) to the vector data source
    layer : str or int, optional
        Layer to read from a multi-layer data source. Defaults to the first.
    bbox : tuple of float, optional
        (minx, miny, maxx, maxy) spatial filter in the layer's CRS
    where : str, optional
        SQL WHERE clause applied by the driver, e.g. "pop > 1000"
    columns : list of str, optional
        Attribute columns to keep
    x, y : str, optional
        Coordinate columns of a delimited text file
    wkt : str, optional
        Well-known-text geometry column of a delimited text file
    crs : str or pyproj.CRS, optional
        CRS of a delimited text file's coordinates
    **options : dict
        GDAL open options (or pandas.read_csv arguments for delimited text)

    Returns:
    --------
    gdf : geopandas.GeoDataFrame
        GeoDataFrame with vector data. Delimited text without any geometry
        column comes back as a pandas.DataFrame.
    """
    if _is_local(vector_path) and not os.path.exists(vector_path):
        raise FileNotFoundError(f"Vector data source not found: {vector_path}")

    if is_delimited_text(vector_path):
        if where is not None:
            raise DriverError("where filters are not supported for delimited text; filter the result instead")
        return _read_delimited(vector_path, x=x, y=y, wkt=wkt, crs=crs, bbox=bbox, columns=columns, **options)

    if any(arg is not None for arg in (x, y, wkt)):
        raise ValueError("x, y and wkt only apply to delimited text files")

    kwargs = dict(options)
    if layer is not None:
        kwargs["layer"] = layer
    if bbox is not None:
        kwargs["bbox"] = tuple(bbox)
    if where is not None:
        kwargs["where"] = where
    if columns is not None:
        kwargs["columns"] = list(columns)

    gdf = gpd.read_file(vector_path, **kwargs)

    if crs is not None:
        gdf = gdf.set_crs(crs, allow_override=True)

    logger.info("Read %d feature(s) from %s", len(gdf), vector_path)
    return gdf


def list_layers(vector_path):
    """List the layers in a vector data source.

    Parameters:
    -----------
    vector_path : str
        Path to the vector data source

    Returns:
    --------
    layers : pandas.DataFrame
        One row per layer with name, geometry_type, features, fields and crs
    """
    if _is_local(vector_path) and not os.path.exists(vector_path):
        raise FileNotFoundError(f"Vector data source not found: {vector_path}")

    rows = []
    for name, geometry_type in pyogrio.list_layers(vector_path):
        info = pyogrio.read_info(vector_path, layer=name, force_feature_count=True)
        rows.append(
            {
                "name": name,
                "geometry_type": geometry_type,
                "features": int(info["features"]),
                "fields": len(info["fields"]),
                "crs": info["crs"],
            }
        )

    return pd.DataFrame(rows, columns=["name", "geometry_type", "features", "fields", "crs"])


def delete_data_source(path):
    """Remove a vector data source from disk, including shapefile sidecar files.

    Parameters:
    -----------
    path : str
        Path to the data source
    """
    path = str(path)
    if path.lower().endswith(".shp"):
        stem = path[:-4]
        for sidecar in SHAPEFILE_SIDECARS:
            for candidate in set(glob.glob(glob.escape(stem) + sidecar) + glob.glob(glob.escape(stem) + sidecar.upper())):
                os.remove(candidate)
    elif os.path.exists(path):
        os.remove(path)
    logger.info("Deleted data source %s", path)


def _existing_layers(path):
    if not os.path.exists(path):
        return []
    return [name for name, _ in pyogrio.list_layers(path)]


def write_vector(gdf, output_path, driver=None, layer=None, append=False, delete_layer=False, delete_dsn=False, **options):
    """Write a GeoDataFrame to a vector file.

    Parameters:
    -----------
    gdf : geopandas.GeoDataFrame
        GeoDataFrame to write
    output_path : str
        Path to the output vector file
    driver : str, optional
        OGR driver name. Guessed from the extension when omitted.
    layer : str, optional
        Layer name. Defaults to the file name without extension.
    append : bool
        Append features to an existing layer
    delete_layer : bool
        Replace an existing layer, leaving other layers of the data source alone
    delete_dsn : bool
        Delete the whole data source before writing
    **options : dict
        Passed to GeoDataFrame.to_file (dataset and layer creation options)
    """
    if not isinstance(gdf, gpd.GeoDataFrame):
        raise TypeError(f"Expected a GeoDataFrame, got {type(gdf).__name__}")
    if append and (delete_layer or delete_dsn):
        raise ValueError("append cannot be combined with delete_layer or delete_dsn")

    output_path = str(output_path)
    driver = driver or guess_vector_driver(output_path)
    layer_name = layer or os.path.splitext(os.path.basename(output_path))[0]
    multi_layer = driver in MULTI_LAYER_DRIVERS

    if delete_dsn and os.path.exists(output_path):
        delete_data_source(output_path)

    existing = _existing_layers(output_path)
    layer_exists = layer_name in existing if multi_layer else bool(existing)

    mode = "w"
    if layer_exists:
        if append:
            target_crs = pyogrio.read_info(output_path, layer=layer_name if multi_layer else None)["crs"]
            if target_crs is not None and gdf.crs is not None and not CRS.from_user_input(target_crs).equals(gdf.crs, ignore_axis_order=True):
                raise SpatialReferenceError(f"Cannot append {gdf.crs.to_string()} features to a layer in {target_crs}")
            mode = "a"
        elif delete_layer:
            if not multi_layer:
                delete_data_source(output_path)
        else:
            raise DataSourceExistsError(
                f"Layer '{layer_name}' already exists in {output_path}. Use append, delete_layer or delete_dsn."
            )
    elif append:
        logger.info("Layer '%s' does not exist in %s yet, creating it", layer_name, output_path)

    _ensure_parent_dir(output_path)

    kwargs = dict(options)
    if multi_layer or layer is not None:
        kwargs["layer"] = layer_name
    given = {str(k).upper() for k in list(kwargs) + list(kwargs.get("layer_options") or {})}
    if driver == "CSV" and "GEOMETRY" not in given:
        # the CSV driver only keeps geometry when asked to
        kwargs["layer_options"] = {**(kwargs.get("layer_options") or {}), "GEOMETRY": "AS_WKT"}

    gdf.to_file(output_path, driver=driver, mode=mode, **kwargs)
    logger.info("Wrote %d feature(s) to %s (%s, layer '%s', mode '%s')", len(gdf), output_path, driver, layer_name, mode)


def layer_to_vector(layer, output_path, **kwargs):
    """Save a layer's objects to a vector file.

    Parameters:
    -----------
    layer : Layer
        Layer to save
    output_path : str
        Path to the output vector file
    **kwargs : dict
        Passed to write_vector
    """
    if layer.objects is None:
        raise ValueError("Layer has no vector objects")

    write_vector(layer.objects, output_path, **kwargs)
