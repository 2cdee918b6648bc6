"""Version information for Chirpwire."""

__version_info__ = (0, 1, 0)
__version__ = ".".join("{0}".format(x) for x in __version_info__)
