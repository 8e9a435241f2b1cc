from enum import Enum


class ErrorKind(Enum):
    """Failure categories reported by the decoding and normalization pipeline."""
    FILE_NOT_FOUND = "FileNotFound"
    INVALID_FORMAT = "InvalidFormat"
    UNSUPPORTED_TRANSFER_SYNTAX = "UnsupportedTransferSyntax"
    MISSING_PIXEL_DATA = "MissingPixelData"
    INVALID_IMAGE_DIMENSIONS = "InvalidImageDimensions"
    UNSUPPORTED_PHOTOMETRIC_INTERPRETATION = "UnsupportedPhotometricInterpretation"
    INVALID_METADATA = "InvalidMetadata"
    UNKNOWN_ERROR = "UnknownError"


# Extra hints shown to the end user, keyed by error kind.
_GUIDANCE: dict[ErrorKind, str] = {
    ErrorKind.UNSUPPORTED_TRANSFER_SYNTAX: (
        "This file may be compressed with an unsupported codec.\n"
        "Try converting it to uncompressed format using a DICOM tool."
    ),
    ErrorKind.INVALID_FORMAT: "Make sure this is a valid DICOM file (.dcm).",
    ErrorKind.UNSUPPORTED_PHOTOMETRIC_INTERPRETATION: (
        "The color format of this image is not supported.\n"
        "Supported formats: MONOCHROME1, MONOCHROME2, RGB"
    ),
}


class DicomError(Exception):
    """Raised when an image cannot be decoded or normalized.

    Carries the error kind, a human-readable message and optional
    decoder-supplied detail text. Raised errors propagate unchanged to the
    caller, which decides how to surface them.
    """

    def __init__(self, kind: ErrorKind, message: str, details: str = "") -> None:
        """Initializes the error.

        Args:
            kind (ErrorKind): Category of the failure.
            message (str): Short description of what went wrong.
            details (str, optional): Extra text from the decoder. Defaults to "".
        """
        super().__init__(message if not details else f"{message}: {details}")
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def name(self) -> str:
        return self.kind.value

    def full_message(self) -> str:
        """Returns the message, followed by the details when there are any."""
        if not self.details:
            return self.message
        return f"{self.message}: {self.details}"

    def user_message(self) -> str:
        """Formats a single message for the end user with kind-specific guidance.

        Returns:
            str: The error text, details and suggestions separated by blank lines.
        """
        text = f"Error: {self.message}"
        if self.details:
            text += f"\n\nDetails: {self.details}"

        guidance = _GUIDANCE.get(self.kind)
        if guidance:
            text += f"\n\n{guidance}"
        return text

    def __repr__(self) -> str:
        return f"DicomError({self.name}, {self.message!r}, details={self.details!r})"
