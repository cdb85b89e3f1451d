# storefront/errors.py


class StorefrontError(Exception):
    """Base class for everything the storefront raises on purpose"""


class ConfigurationError(StorefrontError):
    """Bad settings, e.g. a DATABASE_DSN with an unsupported scheme"""


class RepositoryError(StorefrontError):
    """
    Any database failure: connection refused, bad SQL, constraint errors.
    The driver exception is always chained as __cause__.
    """
