"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Version information for Tiergate.

Reads the version from the VERSION file next to the package, falling back
to the installed distribution metadata.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

def get_version() -> str:
    """
    Read version from VERSION file.
    
    Returns:
        str: The version string (e.g., "1.0.0")
    """
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    try:
        return version("tiergate")
    except PackageNotFoundError:
        return "unknown"

__version__ = get_version()
