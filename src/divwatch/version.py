"""Version information for divwatch."""

import os
from importlib.metadata import PackageNotFoundError, version


def get_package_version() -> str:
    """Installed distribution version, or 'unknown' when running from a checkout."""
    try:
        return version("divwatch")
    except PackageNotFoundError:
        return "unknown"


def get_build_info() -> dict[str, str]:
    """Git commit and branch baked in by the container build.

    Returns:
        Mapping with 'commit' and 'branch', each 'unknown' if not set.
    """
    return {
        "commit": os.getenv("GIT_COMMIT", "unknown"),
        "branch": os.getenv("GIT_BRANCH", "unknown"),
    }


def get_version_info() -> str:
    """Get formatted version information for logging and /health."""
    build = get_build_info()
    return f"{get_package_version()} (commit={build['commit']}, branch={build['branch']})"
