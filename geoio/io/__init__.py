# -*- coding: utf-8 -*-
"""The io package contains modules for reading and writing both raster and vector data.

It abstracts file operations, driver selection and data downloads to facilitate I/O tasks.
"""
