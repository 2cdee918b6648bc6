"""Network execution core for signed HTTP and streaming API calls."""

from .errors import Error
from .version import __version__, __version_info__

__all__ = ("__version__", "__version_info__", "Error")
