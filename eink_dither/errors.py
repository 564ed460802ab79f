"""Exception taxonomy shared by the pipeline and the application shell."""


class PipelineError(Exception):
    """Base class for every failure raised while converting an image."""


class InvalidDimensionsError(PipelineError, ValueError):
    """A source or target size has a zero or negative side."""


class ConfigurationError(PipelineError, ValueError):
    """Unknown palette/algorithm selector or an out-of-range parameter."""


class DecodeError(PipelineError):
    """Input bytes could not be turned into a pixel buffer."""


class FetchError(PipelineError):
    """A remote photo could not be downloaded."""
