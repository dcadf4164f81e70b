"""Exceptions raised while analyzing a receipt image."""


class ReceiptAnalysisError(Exception):
    """Base exception for receipt analysis errors."""


class ImagePreparationError(ReceiptAnalysisError):
    """Raised when the input image cannot be prepared for the model."""


class ImageDecodeError(ImagePreparationError):
    """Raised when the input bytes are not a decodable image."""


class ImageTooSmallToShrink(ImagePreparationError):
    """Raised when the image hits the minimum dimension before fitting the budget."""


class TransportError(ReceiptAnalysisError):
    """Raised when the call to the remote model fails."""


class MalformedModelReply(ReceiptAnalysisError):
    """Raised when the model reply cannot be decoded into a Receipt."""
