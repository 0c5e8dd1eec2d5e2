class InkpadError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class IllegalTransitionError(InkpadError):
    """Upload slot transition requested from a state where it is not legal."""


# ---------------------------------------------------------------------------
# Client side: raised before or during a transfer
# ---------------------------------------------------------------------------


class UploadValidationError(InkpadError):
    """Selection rejected before any network activity."""


class NoFileSelectedError(UploadValidationError):
    def __init__(self, message: str = "No file selected") -> None:
        super().__init__(message)


class TooManyFilesError(UploadValidationError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        plural = "" if limit == 1 else "s"
        super().__init__(f"Maximum {limit} file{plural} allowed")


class FileTooLargeError(UploadValidationError):
    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        super().__init__(f"File size exceeds maximum allowed ({max_size / 1024 / 1024:g}MB)")


class ConfigurationError(InkpadError):
    """The host did not wire something the upload flow needs."""


class UploadFunctionNotConfiguredError(ConfigurationError):
    def __init__(self, message: str = "Upload function is not defined") -> None:
        super().__init__(message)


class TransportError(InkpadError):
    """Transfer failed for a reason other than cancellation."""


class NoUrlReturnedError(TransportError):
    def __init__(self, message: str = "Upload failed: No URL returned") -> None:
        super().__init__(message)


class APIError(TransportError):
    """Ingestion endpoint answered with a 4xx/5xx response."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"[{status_code}] {detail}")


class UploadCancelledError(InkpadError):
    """Transfer aborted by the user. Takes precedence over late success or failure."""

    def __init__(self, message: str = "Upload cancelled") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Server side: media ingestion
# ---------------------------------------------------------------------------


class IngestionRejectedError(InkpadError):
    """Payload rejected by validation; maps to a 400 response."""


class EmptyPayloadError(IngestionRejectedError):
    def __init__(self, message: str = "No file data received.") -> None:
        super().__init__(message)


class FormatError(IngestionRejectedError):
    """Payload is not a decodable image."""


class UnsupportedFormatError(FormatError):
    def __init__(self, detected: str | None = None) -> None:
        self.detected = detected
        super().__init__("Unsupported file type.")


class PayloadTooLargeError(IngestionRejectedError):
    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        super().__init__(f"File size exceeds {max_bytes / 1024 / 1024:g}MB.")


class StorageError(InkpadError):
    """Writing the transcoded asset failed; maps to a 500 response."""


# ---------------------------------------------------------------------------
# Document patching
# ---------------------------------------------------------------------------


class PositionResolutionError(InkpadError):
    def __init__(self, message: str = "Could not determine position for image upload.") -> None:
        super().__init__(message)
