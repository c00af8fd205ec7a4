class UpstreamError(Exception):
    """A search or completion provider failed to produce a usable result."""


class ProviderError(UpstreamError):
    """The completion provider answered, but with no choices to read from."""
