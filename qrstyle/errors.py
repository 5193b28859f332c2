"""Exception taxonomy for the qrstyle pipeline."""


class QRStyleError(Exception):
    """Base class for all qrstyle errors."""


class ValidationError(QRStyleError, ValueError):
    """Bad input detected before any work starts (empty text, bad surface, bad config)."""


class RenderError(QRStyleError):
    """An encoder or drawing failure, tagged with the pipeline stage that failed."""

    PREFIXES = {
        "generate": "Failed to generate QR code",
        "render": "Failed to render QR code",
        "export": "Failed to generate SVG QR code",
    }

    def __init__(self, stage: str, detail: str):
        self.stage = stage
        self.detail = detail
        super().__init__(f"{self.PREFIXES.get(stage, 'Failed to ' + stage)}: {detail}")

    @classmethod
    def wrap(cls, stage: str, err: Exception) -> "RenderError":
        return cls(stage, str(err) or type(err).__name__)


class LogoLoadError(QRStyleError):
    """A logo source could not be read or decoded."""
