# -*- coding: utf-8 -*-
"""Testing Working Document!

Walks through reading and writing vector and raster data with geoio. Without
arguments it builds sample data first; pass a raster and/or a vector path to
use your own files.
"""

import os
import sys

from geoio import (
    LayerManager,
    brick,
    create_sample_data,
    create_sample_points,
    describe,
    list_layers,
    plot_raster,
    plot_vector,
    raster,
    read_vector,
    save_map,
    setup_logging,
    stack,
    write_raster,
    write_vector,
)


def run_example(raster_path=None, vector_path=None):
    """Run Example."""
    output_dir = "output"
    os.makedirs(output_dir, exist_ok=True)
    setup_logging("INFO")

    manager = LayerManager()

    if raster_path is None:
        image_data, transform, crs = create_sample_data()
        raster_path = write_raster(os.path.join(output_dir, "sample.tif"), image_data, transform, crs, overwrite=True)
        print(f"Created sample raster at {raster_path}")
    elif not os.path.exists(raster_path):
        raise ValueError(f"Raster file not found at {raster_path}. Please provide a valid raster file.")

    if vector_path is None:
        vector_path = os.path.join(output_dir, "sample_points.gpkg")
        write_vector(create_sample_points(), vector_path, delete_dsn=True)
        print(f"Created sample vector at {vector_path}")

    print("\nVector input...")
    print(list_layers(vector_path))
    points = read_vector(vector_path)
    print(f"Read {len(points)} features in {points.crs}")

    print("\nVector output...")
    for ext in (".geojson", ".shp", ".gpkg"):
        out = os.path.join(output_dir, f"converted{ext}")
        write_vector(points, out, delete_dsn=True)
        print(f"  {out}: {describe(out)['driver']}")

    print("\nRaster input...")
    first_band = raster(raster_path, band=1)
    all_bands = brick(raster_path)
    print(first_band)
    print(all_bands)

    combined = stack(raster_path, first_band)
    print(f"Stacked layers: {combined.names}")

    print("\nRaster output...")
    write_raster(os.path.join(output_dir, "band1_int2u.tif"), first_band, datatype="INT2U", overwrite=True)
    write_raster(
        os.path.join(output_dir, "brick_lzw.tif"),
        all_bands,
        options=["COMPRESS=LZW"],
        overwrite=True,
    )
    write_raster(os.path.join(output_dir, "band1.asc"), first_band, datatype="FLT4S", overwrite=True)

    print("\nVisual outputs...")
    save_map(plot_raster(all_bands, rgb_bands=(2, 1, 0)), os.path.join(output_dir, "rgb.png"), overwrite=True)
    save_map(plot_vector(points, column="value"), os.path.join(output_dir, "points.png"), overwrite=True)

    manager.load(raster_path)
    manager.load(vector_path)

    print(f"\nResults saved to {output_dir}")
    print("Available layers:")
    for i, layer_name in enumerate(manager.get_layer_names()):
        print(f"  {i + 1}. {manager.get_layer(layer_name)}")


if __name__ == "__main__":
    run_example(*sys.argv[1:3])
