# -*- coding: utf-8 -*-
"""Defines the Raster class, the in-memory side of single-band rasters, bricks and stacks.

A Raster is a set of aligned layers sharing one grid (shape and affine transform) and one CRS.
It either owns its cell values or points at the files and bands they come from, in which case
values are read on first access.
"""

import logging
from itertools import groupby
from operator import itemgetter

import numpy as np
import rasterio
from affine import Affine
from rasterio.coords import BoundingBox
from rasterio.transform import array_bounds

logger = logging.getLogger(__name__)


def nodata_equal(a, b):
    """Compare two nodata values, treating NaN as equal to NaN."""
    if a is None or b is None:
        return a is None and b is None
    if np.isnan(a) and np.isnan(b):
        return True
    return a == b


def unique_names(names):
    """Make layer names unique by suffixing repeats with _2, _3, ..."""
    seen = {}
    result = []
    for name in names:
        name = str(name)
        if name in seen:
            seen[name] += 1
            candidate = f"{name}_{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}_{seen[name]}"
            seen[candidate] = 1
            result.append(candidate)
        else:
            seen[name] = 1
            result.append(name)
    return result


class Raster:
    """One or more raster layers on a common grid.

    ``raster()`` gives a single layer, ``brick()`` all bands of one file and
    ``stack()`` any aligned combination of files and rasters.
    """

    def __init__(
        self,
        values=None,
        transform=None,
        crs=None,
        nodata=None,
        names=None,
        sources=None,
        shape=None,
        dtype=None,
    ):
        """Initialize a Raster.

        Parameters:
        -----------
        values : numpy.ndarray, optional
            Cell values as (layers, rows, cols); a 2-D array becomes one layer
        transform : affine.Affine, optional
            Affine transformation of the grid. Defaults to the identity.
        crs : rasterio.crs.CRS, optional
            Coordinate reference system
        nodata : int or float, optional
            No data value
        names : list of str, optional
            Layer names. Defaults to layer_1, layer_2, ...
        sources : list of (str, int), optional
            File path and 1-based band index for every layer
        shape : tuple of int, optional
            (layers, rows, cols); required when values is not given
        dtype : numpy.dtype, optional
            Cell type; required when values is not given
        """
        if values is None and not sources:
            raise ValueError("A Raster needs either values or sources to read them from")

        if values is not None:
            values = np.asarray(values)
            if values.ndim == 2:
                values = values.reshape(1, *values.shape)
            if values.ndim != 3:
                raise ValueError(f"Raster values must be 2-D or 3-D, got {values.ndim} dimensions")
            shape = values.shape
            dtype = values.dtype
        elif shape is None or dtype is None:
            raise ValueError("shape and dtype are required when values are read lazily")

        self._values = values
        self._shape = tuple(int(s) for s in shape)
        self._dtype = np.dtype(dtype)
        self.sources = list(sources) if sources else []

        if self.sources and len(self.sources) != self._shape[0]:
            raise ValueError(f"Got {len(self.sources)} sources for {self._shape[0]} layers")

        self.transform = transform if transform is not None else Affine.identity()
        self.crs = crs
        self.nodata = nodata

        if names is None:
            names = [f"layer_{i + 1}" for i in range(self._shape[0])]
        names = [str(n) for n in names]
        if len(names) != self._shape[0]:
            raise ValueError(f"Got {len(names)} names for {self._shape[0]} layers")
        if len(set(names)) != len(names):
            raise ValueError(f"Layer names must be unique: {names}")
        self.names = names

    @property
    def values(self):
        """Cell values as a (layers, rows, cols) array, read from disk on first access."""
        if self._values is None:
            self._values = self._read_sources()
        return self._values

    @property
    def in_memory(self):
        return self._values is not None

    def load(self):
        """Read the values into memory and return self."""
        self.values
        return self

    def _read_sources(self):
        logger.debug("Reading %d layer(s) from %s", len(self.sources), sorted({p for p, _ in self.sources}))
        arrays = []
        for path, group in groupby(self.sources, key=itemgetter(0)):
            bands = [band for _, band in group]
            unique = sorted(set(bands))
            with rasterio.open(path) as src:
                data = src.read(unique)
            arrays.append(data[[unique.index(band) for band in bands]])
        values = np.concatenate(arrays, axis=0)
        if values.dtype != self._dtype:
            values = values.astype(self._dtype)
        return values

    @property
    def dtype(self):
        return self._dtype

    @property
    def shape(self):
        return self._shape

    @property
    def nlayers(self):
        return self._shape[0]

    @property
    def nrow(self):
        return self._shape[1]

    @property
    def ncol(self):
        return self._shape[2]

    @property
    def ncell(self):
        return self.nrow * self.ncol

    @property
    def res(self):
        """Cell size as (x, y)."""
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def extent(self):
        """Bounding box as (left, bottom, right, top)."""
        west, south, east, north = array_bounds(self.nrow, self.ncol, self.transform)
        return BoundingBox(west, south, east, north)

    def __len__(self):
        return self.nlayers

    def _layer_indexes(self, key):
        if isinstance(key, (list, tuple)):
            indexes = []
            for k in key:
                indexes.extend(self._layer_indexes(k))
            return indexes

        if isinstance(key, str):
            if key not in self.names:
                raise KeyError(f"Layer '{key}' not found, available: {self.names}")
            return [self.names.index(key)]

        if isinstance(key, (int, np.integer)):
            index = int(key)
            if index < 0:
                index += self.nlayers
            if not 0 <= index < self.nlayers:
                raise IndexError(f"Layer index {key} out of range for {self.nlayers} layer(s)")
            return [index]

        raise TypeError(f"Layers are selected by index or name, not {type(key).__name__}")

    def __getitem__(self, key):
        """Select layers by 0-based index, name, or a list of either."""
        indexes = self._layer_indexes(key)
        names = [self.names[i] for i in indexes]
        if len(set(names)) != len(names):
            raise ValueError(f"Layer selection repeats layers: {names}")

        if self.in_memory:
            return Raster(
                values=self._values[indexes],
                transform=self.transform,
                crs=self.crs,
                nodata=self.nodata,
                names=names,
                sources=[self.sources[i] for i in indexes] if self.sources else None,
            )

        return Raster(
            transform=self.transform,
            crs=self.crs,
            nodata=self.nodata,
            names=names,
            sources=[self.sources[i] for i in indexes],
            shape=(len(indexes), self.nrow, self.ncol),
            dtype=self._dtype,
        )

    def masked(self):
        """Return the values as a masked array with nodata and NaN cells masked."""
        values = self.values
        mask = np.zeros(values.shape, dtype=bool)
        if np.issubdtype(values.dtype, np.floating):
            mask |= np.isnan(values)
        if self.nodata is not None and not np.isnan(self.nodata):
            mask |= values == self.nodata
        return np.ma.masked_array(values, mask=mask)

    def same_grid(self, other):
        """Whether another raster shares this raster's rows, columns and transform."""
        return self.nrow == other.nrow and self.ncol == other.ncol and self.transform.almost_equals(other.transform)

    def copy(self):
        """Create a copy of this raster.

        Returns:
        --------
        raster_copy : Raster
            Copy with its own values array when the values are in memory
        """
        return Raster(
            values=self._values.copy() if self.in_memory else None,
            transform=self.transform,
            crs=self.crs,
            nodata=self.nodata,
            names=list(self.names),
            sources=list(self.sources) or None,
            shape=self._shape,
            dtype=self._dtype,
        )

    def to_layer(self, name=None, parent=None):
        """Wrap this raster in a Layer."""
        from .layer import Layer

        layer = Layer(name=name, parent=parent, type="raster")
        layer.raster = self
        if self.sources:
            layer.source = self.sources[0][0]
        return layer

    def __repr__(self):
        """Summary of the grid, similar to what gdalinfo reports."""
        left, bottom, right, top = self.extent
        xres, yres = self.res
        kind = "in memory" if self.in_memory else "on disk"
        return (
            f"class      : Raster ({kind})\n"
            f"dimensions : {self.nrow}, {self.ncol}, {self.ncell}, {self.nlayers}  (nrow, ncol, ncell, nlayers)\n"
            f"resolution : {xres:g}, {yres:g}  (x, y)\n"
            f"extent     : {left:g}, {right:g}, {bottom:g}, {top:g}  (xmin, xmax, ymin, ymax)\n"
            f"crs        : {self.crs.to_string() if self.crs else None}\n"
            f"names      : {', '.join(self.names)}"
        )
