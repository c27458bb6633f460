"""Profile photo encoding, validation, and session persistence."""

from .codec import BinaryImage, EncodedImage, decode, encode
from .store import ImagePersistenceStore
from .validator import (
    DragState,
    ImageConstraints,
    image_error_key,
    validate_image,
    validate_image_set,
)

__all__ = [
    "BinaryImage",
    "DragState",
    "EncodedImage",
    "ImageConstraints",
    "ImagePersistenceStore",
    "decode",
    "encode",
    "image_error_key",
    "validate_image",
    "validate_image_set",
]
