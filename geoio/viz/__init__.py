# -*- coding: utf-8 -*-
"""Plotting helpers for turning layers into map images."""
