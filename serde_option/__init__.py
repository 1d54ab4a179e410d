"""serde-option - Expand #[nullable] and #[not_required] markers into serde attributes."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("serde-option")
except PackageNotFoundError:
    __version__ = "(local)"
