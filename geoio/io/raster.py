# -*- coding: utf-8 -*-
"""Handles raster input and output operations, including reading and saving multi-band images.

Single bands, whole multi-band files (bricks) and stacks of aligned files are all returned as Raster objects
that read their cell values lazily. Writing supports every GDAL driver rasterio can create, an explicit
on-disk datatype and creation options such as compression.
"""

import logging
import os
import warnings

import numpy as np
import pandas as pd
import rasterio
from rasterio import features
from rasterio.transform import from_origin

from ..config import get_settings
from ..core.raster import Raster, nodata_equal, unique_names
from ..errors import DataSourceExistsError, SpatialReferenceError
from .drivers import guess_raster_driver, resolve_datatype

logger = logging.getLogger(__name__)


def _ensure_parent_dir(path):
    parent = os.path.dirname(str(path))
    if parent:
        os.makedirs(parent, exist_ok=True)


def _check_exists(raster_path):
    path = str(raster_path)
    if "://" not in path and not path.startswith("/vsi") and not os.path.exists(path):
        raise FileNotFoundError(f"Raster file not found: {raster_path}")


def _band_names(raster_path, src, bands):
    stem = os.path.splitext(os.path.basename(str(raster_path)))[0]
    names = []
    for band in bands:
        description = src.descriptions[band - 1]
        if description:
            names.append(description)
        elif src.count == 1:
            names.append(stem)
        else:
            names.append(f"{stem}_{band}")
    return unique_names(names)


def _open(raster_path, bands=None, in_memory=None):
    if in_memory is None:
        in_memory = get_settings().read_into_memory

    _check_exists(raster_path)

    with rasterio.open(raster_path) as src:
        if bands is None:
            bands = list(range(1, src.count + 1))

        for band in bands:
            if not 1 <= band <= src.count:
                raise ValueError(f"Band {band} out of range, {raster_path} has {src.count} band(s)")

        dtype = np.result_type(*[src.dtypes[band - 1] for band in bands])

        result = Raster(
            values=src.read(bands) if in_memory else None,
            transform=src.transform,
            crs=src.crs,
            nodata=src.nodata,
            names=_band_names(raster_path, src, bands),
            sources=[(str(raster_path), band) for band in bands],
            shape=(len(bands), src.height, src.width),
            dtype=dtype,
        )

    logger.debug("Opened %s bands %s (%s)", raster_path, bands, "in memory" if in_memory else "lazy")
    return result


def read_raster(raster_path, bands=None):
    """Read a raster file and return its data, transform, and CRS.

    Parameters:
    -----------
    raster_path : str
        Path to the raster file
    bands : list of int, optional
        1-based band indexes to read. Defaults to all bands.

    Returns:
    --------
    image_data : numpy.ndarray
        Array with raster data values as (bands, rows, cols)
    transform : affine.Affine
        Affine transformation for the raster
    crs : rasterio.crs.CRS
        Coordinate reference system
    """
    _check_exists(raster_path)

    with rasterio.open(raster_path) as src:
        image_data = src.read(bands)
        transform = src.transform
        crs = src.crs

    if image_data.ndim == 2:
        image_data = image_data.reshape(1, *image_data.shape)

    return image_data, transform, crs


def raster(raster_path, band=1, in_memory=None):
    """Open a single band of a raster file.

    Parameters:
    -----------
    raster_path : str
        Path to the raster file
    band : int
        1-based band index
    in_memory : bool, optional
        Read the values now instead of on first access. Defaults to the
        ``read_into_memory`` setting.

    Returns:
    --------
    raster : Raster
        Single-layer raster
    """
    return _open(raster_path, bands=[band], in_memory=in_memory)


def brick(raster_path, in_memory=None):
    """Open every band of one multi-band raster file.

    Parameters:
    -----------
    raster_path : str
        Path to the raster file
    in_memory : bool, optional
        Read the values now instead of on first access

    Returns:
    --------
    raster : Raster
        Raster with one layer per band
    """
    if isinstance(raster_path, (list, tuple)):
        raise TypeError("brick reads a single file; use stack() to combine several")
    return _open(raster_path, in_memory=in_memory)


def stack(*items, in_memory=None):
    """Combine raster files and Raster objects that share a grid into one Raster.

    Parameters:
    -----------
    *items : str or Raster
        Paths (all their bands are used) or Raster objects, or a single list
        of them
    in_memory : bool, optional
        Read values of path items now instead of on first access

    Returns:
    --------
    raster : Raster
        Raster with the layers of every item, in order
    """
    if len(items) == 1 and isinstance(items[0], (list, tuple)):
        items = items[0]
    if not items:
        raise ValueError("stack needs at least one raster")

    rasters = [item if isinstance(item, Raster) else brick(item, in_memory=in_memory) for item in items]
    first = rasters[0]

    for other in rasters[1:]:
        if not first.same_grid(other):
            raise ValueError(
                f"Cannot stack rasters with different extent or resolution: "
                f"{first.shape[1:]} {tuple(first.extent)} vs {other.shape[1:]} {tuple(other.extent)}"
            )
        if first.crs != other.crs:
            raise SpatialReferenceError(f"Cannot stack rasters with different CRS: {first.crs} vs {other.crs}")

    names = unique_names([name for r in rasters for name in r.names])
    nlayers = sum(r.nlayers for r in rasters)
    dtype = np.result_type(*[r.dtype for r in rasters])
    same_nodata = all(nodata_equal(first.nodata, r.nodata) for r in rasters)
    all_sourced = all(r.sources for r in rasters)
    sources = [source for r in rasters for source in r.sources] if all_sourced else None

    if same_nodata and all_sourced and not any(r.in_memory for r in rasters):
        return Raster(
            transform=first.transform,
            crs=first.crs,
            nodata=first.nodata,
            names=names,
            sources=sources,
            shape=(nlayers, first.nrow, first.ncol),
            dtype=dtype,
        )

    if same_nodata:
        values = np.concatenate([r.values.astype(dtype, copy=False) for r in rasters], axis=0)
        nodata = first.nodata
    else:
        logger.info("Stacked rasters use different nodata values; converting to float with NaN")
        values = np.concatenate([r.masked().astype(np.float64).filled(np.nan) for r in rasters], axis=0)
        nodata = np.nan

    return Raster(values=values, transform=first.transform, crs=first.crs, nodata=nodata, names=names, sources=sources)


def _creation_options(options, driver):
    if options is None:
        creation = {}
    elif isinstance(options, dict):
        creation = {str(key).upper(): value for key, value in options.items()}
    else:
        creation = {}
        for option in options:
            key, sep, value = str(option).partition("=")
            if not sep or not key:
                raise ValueError(f"Creation options must look like KEY=VALUE, got '{option}'")
            creation[key.strip().upper()] = value.strip()

    compression = get_settings().gtiff_compression
    if driver == "GTiff" and "COMPRESS" not in creation and compression:
        creation["COMPRESS"] = compression.upper()

    return creation


def _convert_datatype(values, datatype, source_nodata, nodata):
    data = values.astype(np.float64)
    mask = np.isnan(data)
    if source_nodata is not None and not np.isnan(source_nodata):
        mask |= values == source_nodata

    target_nodata = datatype.nodata if nodata is None else nodata

    if np.issubdtype(datatype.dtype, np.integer):
        data = np.round(data)

    out_of_range = ~mask & ((data < datatype.min) | (data > datatype.max))
    if out_of_range.any():
        warnings.warn(
            f"{int(out_of_range.sum())} value(s) outside the {datatype.name} range "
            f"[{datatype.min}, {datatype.max}] were written as nodata",
            UserWarning,
            stacklevel=3,
        )
        mask |= out_of_range

    data[mask] = target_nodata
    return data.astype(datatype.dtype), target_nodata


def _remove_raster(path):
    for candidate in (path, f"{path}.aux.xml"):
        if os.path.exists(candidate):
            os.remove(candidate)


def write_raster(
    output_path,
    data,
    transform=None,
    crs=None,
    nodata=None,
    driver=None,
    datatype=None,
    overwrite=None,
    options=None,
    names=None,
):
    """Write raster data to a file.

    Parameters:
    -----------
    output_path : str
        Path to the output raster file
    data : Raster or numpy.ndarray
        Raster, or array with raster data values as (bands, rows, cols) or (rows, cols)
    transform : affine.Affine, optional
        Affine transformation for the raster. Required for arrays.
    crs : rasterio.crs.CRS, optional
        Coordinate reference system
    nodata : int or float, optional
        No data value
    driver : str, optional
        GDAL driver. Guessed from the extension when omitted.
    datatype : str or numpy.dtype, optional
        On-disk cell type such as "INT2U" or "FLT4S". Defaults to the data's dtype.
    overwrite : bool, optional
        Replace an existing file. Defaults to the ``overwrite`` setting.
    options : dict or list of str, optional
        Creation options, e.g. {"COMPRESS": "LZW"} or ["COMPRESS=LZW"]
    names : list of str, optional
        Band names, stored as band descriptions in GeoTIFF files

    Returns:
    --------
    output_path : str
        The written path
    """
    if overwrite is None:
        overwrite = get_settings().overwrite

    output_path = str(output_path)
    driver = driver or guess_raster_driver(output_path)

    if isinstance(data, Raster):
        values = data.values
        transform = transform if transform is not None else data.transform
        crs = crs if crs is not None else data.crs
        source_nodata = data.nodata
        names = names if names is not None else data.names
    else:
        values = np.asarray(data)
        if transform is None:
            raise ValueError("transform is required when writing an array")
        source_nodata = nodata

    if values.ndim == 2:
        values = values.reshape(1, *values.shape)
    if values.ndim != 3:
        raise ValueError(f"Raster data must be 2-D or 3-D, got {values.ndim} dimensions")

    count, height, width = values.shape

    if names is not None and len(names) != count:
        raise ValueError(f"Got {len(names)} names for {count} band(s)")

    if os.path.exists(output_path):
        if not overwrite:
            raise DataSourceExistsError(f"{output_path} already exists. Use overwrite=True to replace it.")
        _remove_raster(output_path)

    if datatype is not None:
        values, nodata = _convert_datatype(values, resolve_datatype(datatype), source_nodata, nodata)
    elif nodata is None:
        nodata = source_nodata

    creation = _creation_options(options, driver)

    _ensure_parent_dir(output_path)

    with rasterio.open(
        output_path,
        "w",
        driver=driver,
        height=height,
        width=width,
        count=count,
        dtype=values.dtype,
        crs=crs,
        transform=transform,
        nodata=nodata,
        **creation,
    ) as dst:
        dst.write(values)
        if names is not None and driver == "GTiff":
            for index, name in enumerate(names, start=1):
                dst.set_band_description(index, name)

    logger.info("Wrote %d band(s) of %dx%d %s to %s (%s)", count, height, width, values.dtype, output_path, driver)
    return output_path


def _grid_resolution(layer):
    """Cell size of the raster grid a layer, or the layer it came from, carries."""
    while layer is not None:
        if layer.raster is not None:
            return layer.raster.res[0]
        layer = layer.parent
    return None


def layer_to_raster(layer, output_path, column=None, nodata=0, resolution=None, **kwargs):
    """Save a layer to a raster file.

    Raster layers are written as they are. Vector layers are burned into a
    grid covering their bounds, one value per feature taken from ``column``.

    Parameters:
    -----------
    layer : Layer
        Layer to save
    output_path : str
        Path to the output raster file
    column : str, optional
        Column to rasterize (if saving from vector objects)
    nodata : int or float, optional
        No data value for cells no feature touches
    resolution : float, optional
        Cell size of the rasterized grid, in CRS units. Defaults to the
        resolution of the layer's (or its parent's) raster, otherwise 10.
    **kwargs : dict
        Passed to write_raster

    Returns:
    --------
    output_path : str
        The written path
    """
    if layer.raster is not None and column is None:
        return write_raster(output_path, layer.raster, **kwargs)

    if layer.objects is not None and column is not None:
        if column not in layer.objects.columns:
            raise ValueError(f"Column '{column}' not found in layer objects")
        if resolution is None:
            resolution = _grid_resolution(layer) or 10
        if resolution <= 0:
            raise ValueError("resolution must be a positive number")

        objects = layer.objects
        col_values = objects[column]
        if pd.api.types.is_numeric_dtype(col_values):
            shapes = [(geom, float(val)) for geom, val in zip(objects.geometry, col_values)]
        else:
            unique_vals = col_values.unique()
            val_map = {val: idx + 1 for idx, val in enumerate(unique_vals)}
            logger.info("Mapping categorical values of '%s': %s", column, val_map)
            shapes = [(geom, val_map[val]) for geom, val in zip(objects.geometry, col_values)]

        minx, miny, maxx, maxy = objects.total_bounds
        width = max(1, int(np.ceil((maxx - minx) / resolution)))
        height = max(1, int(np.ceil((maxy - miny) / resolution)))
        transform = from_origin(minx, maxy, resolution, resolution)

        output = np.full((height, width), nodata, dtype=np.float32)
        features.rasterize(shapes, out=output, transform=transform, fill=nodata)

        return write_raster(
            output_path,
            output,
            transform=transform,
            crs=objects.crs,
            nodata=nodata,
            names=[column],
            **kwargs,
        )

    raise ValueError("Layer must have either raster data or objects with a specified column")
