"""Exception taxonomy for the capture pipeline."""

from __future__ import annotations


class CaptureError(RuntimeError):
    """Base class for failures confined to a single URL's capture."""


class ClassificationMiss(CaptureError):
    """Raised when a URL does not belong to any supported platform."""


class ExtractionError(CaptureError):
    """Base extraction error for platform data gathering failures."""


class InvalidUrlShape(ExtractionError):
    """Raised when a URL lacks the path segments its platform requires."""


class ContentNotFound(ExtractionError):
    """Raised when the expected post content is missing or timed out."""


class UpstreamUnavailable(ExtractionError):
    """Raised when a network or API call fails."""


class RenderError(CaptureError):
    """Raised when a card document cannot be rasterized."""


class RenderTimeout(RenderError):
    """Raised when card images never reach a settled state."""


class ArtifactWriteError(CaptureError):
    """Raised when a card, media file or metadata record cannot be written."""


class BrowserLaunchError(RuntimeError):
    """Raised when the shared browser engine cannot be started; aborts the run."""
