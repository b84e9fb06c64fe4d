# -*- coding: utf-8 -*-
"""Custom error types."""


class DriverError(ValueError):
    """Unknown driver, or a driver that cannot handle the requested operation."""


class SpatialReferenceError(ValueError):
    """Coordinate reference systems that should match do not.

    eg. appending features in EPSG:4326 to a layer stored in EPSG:27700
    """


class DataSourceExistsError(FileExistsError):
    """The output file or layer already exists and replacing it was not requested."""
