# -*- coding: utf-8 -*-
"""Defines the Layer class and related functionality for organizing geospatial data.

A layer is a named container for one dataset read from (or headed to) disk: either vector features held in a
GeoDataFrame or a Raster. The LayerManager keeps a catalog of layers so a session can load several sources,
look them up by name and write them back out in other formats.
"""

import logging
import os
import uuid

import pandas as pd

logger = logging.getLogger(__name__)


class Layer:
    """A Layer holds one vector or raster dataset together with where it came from."""

    def __init__(self, name=None, parent=None, type="vector"):
        """Initialize a Layer.

        Parameters:
        -----------
        name : str, optional
            Name of the layer. If None, a unique name will be generated.
        parent : Layer, optional
            Layer this one was derived from.
        type : str
            "vector" or "raster"
        """
        if type not in ("vector", "raster"):
            raise ValueError(f"Layer type must be 'vector' or 'raster', got '{type}'")

        self.id = str(uuid.uuid4())
        self.name = name if name else f"Layer_{self.id[:8]}"
        self.parent = parent
        self.type = type
        self.created_at = pd.Timestamp.now()

        self.raster = None
        self.objects = None
        self.source = None
        self.driver = None
        self.metadata = {}

    @property
    def crs(self):
        if self.objects is not None:
            return self.objects.crs
        if self.raster is not None:
            return self.raster.crs
        return None

    @property
    def bounds(self):
        """Bounds as (minx, miny, maxx, maxy), or None for an empty layer."""
        if self.objects is not None:
            return tuple(float(v) for v in self.objects.total_bounds)
        if self.raster is not None:
            return tuple(self.raster.extent)
        return None

    def copy(self):
        """Create a copy of this layer.

        Returns:
        --------
        layer_copy : Layer
            Copy of this layer
        """
        new_layer = Layer(name=f"{self.name}_copy", parent=self.parent, type=self.type)

        if self.raster is not None:
            new_layer.raster = self.raster.copy()

        if self.objects is not None:
            new_layer.objects = self.objects.copy()

        new_layer.metadata = self.metadata.copy()
        new_layer.source = self.source
        new_layer.driver = self.driver

        return new_layer

    def __str__(self):
        """String representation of the layer."""
        if self.objects is not None:
            size = f"features: {len(self.objects)}"
        elif self.raster is not None:
            size = f"bands: {self.raster.nlayers}, size: {self.raster.nrow}x{self.raster.ncol}"
        else:
            size = "empty"

        return f"Layer '{self.name}' (type: {self.type}, {size}, source: {self.source})"


class LayerManager:
    """Manages a collection of loaded layers."""

    def __init__(self):
        """Initialize the layer manager."""
        self.layers = {}
        self.active_layer = None

    def add_layer(self, layer, set_active=True):
        """Add a layer to the manager.

        Parameters:
        -----------
        layer : Layer
            Layer to add
        set_active : bool
            Whether to set this layer as the active layer

        Returns:
        --------
        layer : Layer
            The added layer
        """
        self.layers[layer.id] = layer

        if set_active:
            self.active_layer = layer

        return layer

    def get_layer(self, layer_id_or_name):
        """Get a layer by ID or name.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name

        Returns:
        --------
        layer : Layer
            The requested layer
        """
        if layer_id_or_name in self.layers:
            return self.layers[layer_id_or_name]

        for layer in self.layers.values():
            if layer.name == layer_id_or_name:
                return layer

        raise ValueError(f"Layer '{layer_id_or_name}' not found")

    def get_layer_names(self):
        """Get a list of all layer names.

        Returns:
        --------
        names : list
            List of layer names
        """
        return [layer.name for layer in self.layers.values()]

    def remove_layer(self, layer_id_or_name):
        """Remove a layer from the manager.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name
        """
        layer = self.get_layer(layer_id_or_name)

        if layer.id in self.layers:
            del self.layers[layer.id]

        if self.active_layer and self.active_layer.id == layer.id:
            if self.layers:
                self.active_layer = list(self.layers.values())[-1]
            else:
                self.active_layer = None

    def load(self, path, name=None, set_active=True, **kwargs):
        """Read a vector or raster data source into a new layer.

        Parameters:
        -----------
        path : str
            Path to the data source
        name : str, optional
            Layer name. Defaults to the file name without extension (plus the
            vector layer name when one is selected).
        set_active : bool
            Whether to make the new layer active
        **kwargs : dict
            Passed to read_vector or brick

        Returns:
        --------
        layer : Layer
            The loaded layer
        """
        from ..io.drivers import RASTER_DRIVERS, VECTOR_DRIVERS
        from ..io.info import detect_kind
        from ..io.raster import brick
        from ..io.vector import read_vector

        kind = detect_kind(path)
        stem = os.path.splitext(os.path.basename(str(path)))[0]

        if kind == "raster":
            layer = brick(path, **kwargs).to_layer(name=name or stem)
        else:
            if name is None and kwargs.get("layer") is not None:
                name = f"{stem}_{kwargs['layer']}"
            layer = Layer(name=name or stem, type="vector")
            layer.objects = read_vector(path, **kwargs)
            layer.source = str(path)

        ext = os.path.splitext(str(path))[1].lower()
        layer.driver = (RASTER_DRIVERS if kind == "raster" else VECTOR_DRIVERS).get(ext)
        layer.metadata["kind"] = kind
        logger.info("Loaded %s", layer)
        return self.add_layer(layer, set_active=set_active)

    def save(self, layer_id_or_name, output_path, **kwargs):
        """Write a managed layer to disk.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name
        output_path : str
            Destination path; the format follows the extension
        **kwargs : dict
            Passed to write_vector or write_raster

        Returns:
        --------
        output_path : str
            The written path
        """
        from ..io.raster import write_raster
        from ..io.vector import layer_to_vector

        layer = self.get_layer(layer_id_or_name)

        if layer.type == "raster":
            if layer.raster is None:
                raise ValueError(f"Layer '{layer.name}' has no raster data")
            return write_raster(output_path, layer.raster, **kwargs)

        layer_to_vector(layer, output_path, **kwargs)
        return output_path
