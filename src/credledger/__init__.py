"""credledger - Credential registry for course enrollments and certificates."""

__version__ = "0.1.0"


def get_version() -> str:
    """Return the package version."""
    return __version__
