from importlib import metadata

try:
    __version__ = metadata.version("sacco-manager")
except metadata.PackageNotFoundError:  # pragma: no cover - running from a checkout
    from sacco import __version__
