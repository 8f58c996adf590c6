"""Failure taxonomy for the chart pipeline.

DataSourceError and RenderError are recoverable: the pipeline answers them
with a pre-baked fallback buffer. PackingPrecondition and FallbackMissing are
configuration or programming bugs and always propagate.
"""


class SpotCheckError(Exception):
    pass


class DataSourceError(SpotCheckError):
    """Upstream series could not be fetched or was malformed."""


class DataEmpty(DataSourceError):
    """Upstream answered, but with no samples to chart."""


class RenderError(SpotCheckError):
    """The chart renderer crashed, timed out or produced no image."""


class PackingPrecondition(SpotCheckError):
    """Odd pixel count, or raster dimensions that don't match the target."""


class FallbackMissing(SpotCheckError):
    """No usable fallback buffer for a (chart kind, failure category) pair."""
