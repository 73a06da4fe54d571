from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """Returns the installed structview version."""
    try:
        return version("structview")
    except PackageNotFoundError:
        return "unknown"
