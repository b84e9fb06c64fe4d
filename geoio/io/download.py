# -*- coding: utf-8 -*-
"""Retrieve open data: download files over HTTP and unpack zip archives."""

import logging
import os
import zipfile
from urllib.parse import unquote, urlparse

import requests

from ..config import get_settings

logger = logging.getLogger(__name__)


def _filename_from_url(url):
    name = os.path.basename(unquote(urlparse(url).path))
    if not name:
        raise ValueError(f"Cannot derive a file name from {url}; pass filename explicitly")
    return name


def download_file(url, output_dir=None, filename=None, overwrite=False):
    """Download a file to disk.

    Parameters:
    -----------
    url : str
        URL of the file
    output_dir : str, optional
        Target directory. Defaults to the ``download_dir`` setting.
    filename : str, optional
        Target file name. Defaults to the last part of the URL path.
    overwrite : bool
        Download again when the file already exists

    Returns:
    --------
    path : str
        Path of the downloaded file
    """
    settings = get_settings()
    output_dir = output_dir or settings.download_dir
    path = os.path.join(output_dir, filename or _filename_from_url(url))

    if os.path.exists(path) and not overwrite:
        logger.info("%s already exists, skipping download", path)
        return path

    os.makedirs(output_dir, exist_ok=True)
    partial = f"{path}.part"

    logger.info("Downloading %s to %s", url, path)
    try:
        with requests.get(url, stream=True, timeout=settings.request_timeout) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_content(chunk_size=settings.chunk_size):
                    if chunk:
                        f.write(chunk)
    except Exception:
        if os.path.exists(partial):
            os.remove(partial)
        raise

    os.replace(partial, path)
    return path


def extract_archive(archive_path, output_dir=None):
    """Extract a zip archive.

    Parameters:
    -----------
    archive_path : str
        Path to the .zip file
    output_dir : str, optional
        Target directory. Defaults to the archive's directory.

    Returns:
    --------
    paths : list of str
        Extracted file paths
    """
    output_dir = output_dir or os.path.dirname(os.path.abspath(archive_path))
    root = os.path.realpath(output_dir)

    with zipfile.ZipFile(archive_path) as archive:
        members = [m for m in archive.infolist() if not m.is_dir()]
        for member in members:
            target = os.path.realpath(os.path.join(root, member.filename))
            if os.path.commonpath([root, target]) != root:
                raise ValueError(f"Archive member '{member.filename}' would be extracted outside {output_dir}")

        archive.extractall(root)

    paths = [os.path.join(output_dir, m.filename) for m in members]
    logger.info("Extracted %d file(s) from %s", len(paths), archive_path)
    return paths


def download_and_extract(url, output_dir=None, overwrite=False):
    """Download a zip archive and extract it next to the download.

    Returns:
    --------
    paths : list of str
        Extracted file paths
    """
    archive_path = download_file(url, output_dir=output_dir, overwrite=overwrite)
    return extract_archive(archive_path, output_dir=os.path.dirname(archive_path))
