# -*- coding: utf-8 -*-
"""The core package holds the containers geoio reads data into.

Layers wrap one dataset each and the Raster class represents single bands, multi-band bricks and stacks alike.
"""
