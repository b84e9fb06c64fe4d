# -*- coding: utf-8 -*-
"""Helpers for sample data and quick summaries."""
