# schemashift/schemashift/version.py
"""
Version information for schemashift.
"""

import sys
from typing import Tuple, Dict, Any

# Current package version
__version__ = "0.1.0"

# Version components for programmatic access
VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0
VERSION_PRE_RELEASE = None  # None, "alpha", "beta", "rc"

PYTHON_MIN_VERSION = (3, 9)


def get_version() -> str:
    """
    Get the full version string.
    
    Returns:
        Version string in semver format (e.g., "0.1.0", "0.1.0-rc")
    """
    version = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
    if VERSION_PRE_RELEASE:
        version += f"-{VERSION_PRE_RELEASE}"
    return version


def get_version_info() -> Tuple[int, int, int, str]:
    """Get version information as a (major, minor, patch, pre_release) tuple."""
    return (
        VERSION_MAJOR,
        VERSION_MINOR,
        VERSION_PATCH,
        VERSION_PRE_RELEASE or ""
    )


def get_python_version_string() -> str:
    """Get current Python version as a string."""
    return f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"


def get_build_info() -> Dict[str, Any]:
    """
    Get build information for the package.
    
    Returns:
        Dictionary containing version and interpreter metadata
    """
    return {
        "version": get_version(),
        "version_info": get_version_info(),
        "python_version": get_python_version_string(),
        "python_compatible": sys.version_info[:2] >= PYTHON_MIN_VERSION,
        "min_python": f"{PYTHON_MIN_VERSION[0]}.{PYTHON_MIN_VERSION[1]}",
    }


VERSION = __version__
VERSION_TUPLE = (VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH)
