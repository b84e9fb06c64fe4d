# -*- coding: utf-8 -*-
"""Functions to create maps of layers and save them as images."""

import logging
import os

import matplotlib.pyplot as plt
import numpy as np

from ..errors import DataSourceExistsError

logger = logging.getLogger(__name__)


def _normalize(band):
    """Stretch a band to 0-1, ignoring masked cells."""
    band = np.ma.masked_invalid(band)
    low, high = band.min(), band.max()
    if np.ma.is_masked(low) or np.ma.is_masked(high):
        return np.ma.masked_array(np.zeros(band.shape))
    return np.clip((band - low) / (high - low + 1e-10), 0, 1)


def plot_raster(raster, band=0, rgb_bands=None, cmap="viridis", title=None, figsize=(10, 8)):
    """Plot one band, or an RGB composite, of a raster in map coordinates.

    Parameters:
    -----------
    raster : Raster
        Raster to plot
    band : int or str
        Layer index or name for a single-band plot
    rgb_bands : tuple of int, optional
        Layer indexes used as red, green and blue
    cmap : str
        Colormap for single-band plots
    title : str, optional
        Plot title. Defaults to the layer name.
    figsize : tuple
        Figure size in inches

    Returns:
    --------
    fig : matplotlib.figure.Figure
    """
    fig, ax = plt.subplots(figsize=figsize)
    left, bottom, right, top = raster.extent
    extent = (left, right, bottom, top)
    values = raster.masked().astype(np.float64)

    if rgb_bands is not None:
        if len(rgb_bands) != 3 or max(rgb_bands) >= raster.nlayers:
            raise ValueError(f"rgb_bands must be three layer indexes below {raster.nlayers}, got {rgb_bands}")
        rgb = np.stack([_normalize(values[i]).filled(0) for i in rgb_bands], axis=2)
        ax.imshow(rgb, extent=extent)
        ax.set_title(title or "RGB composite")
    else:
        index = raster.names.index(band) if isinstance(band, str) else band
        image = ax.imshow(values[index], cmap=cmap, extent=extent)
        fig.colorbar(image, ax=ax, shrink=0.8)
        ax.set_title(title or raster.names[index])

    ax.set_xlabel("x")
    ax.set_ylabel("y")
    return fig


def plot_vector(gdf, column=None, cmap="viridis", title=None, figsize=(10, 8), legend=True):
    """Plot vector features, optionally coloured by an attribute."""
    if column is not None and column not in gdf.columns:
        raise ValueError(f"Column '{column}' not found")

    fig, ax = plt.subplots(figsize=figsize)

    if column is not None:
        gdf.plot(column=column, cmap=cmap, ax=ax, legend=legend)
    else:
        gdf.plot(ax=ax, edgecolor="black", facecolor="lightgrey")

    if title:
        ax.set_title(title)
    elif column:
        ax.set_title(f"{column}")

    ax.grid(alpha=0.3)
    return fig


def plot_layer(layer, **kwargs):
    """Plot a layer with plot_raster or plot_vector depending on its type."""
    if layer.raster is not None:
        kwargs.setdefault("title", layer.name)
        return plot_raster(layer.raster, **kwargs)
    if layer.objects is not None:
        kwargs.setdefault("title", layer.name)
        return plot_vector(layer.objects, **kwargs)
    raise ValueError(f"Layer '{layer.name}' has no data to plot")


def save_map(fig, output_path, dpi=150, overwrite=False, close=True):
    """Save a figure to an image file.

    Parameters:
    -----------
    fig : matplotlib.figure.Figure
        Figure to save
    output_path : str
        Output path; the format follows the extension (png, pdf, svg, jpg)
    dpi : int
        Resolution in dots per inch
    overwrite : bool
        Replace an existing file
    close : bool
        Close the figure once saved

    Returns:
    --------
    output_path : str
        The written path
    """
    if os.path.exists(output_path) and not overwrite:
        raise DataSourceExistsError(f"{output_path} already exists. Use overwrite=True to replace it.")

    parent = os.path.dirname(str(output_path))
    if parent:
        os.makedirs(parent, exist_ok=True)

    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    logger.info("Saved map to %s", output_path)

    if close:
        plt.close(fig)

    return output_path
