from .errors import EncodingError, PairingMismatchError, SanitizeError, TokenizeError
from .sanitizer import Sanitizer, sanitize
from .tokens import ParseError

__all__ = [
    "EncodingError",
    "PairingMismatchError",
    "ParseError",
    "SanitizeError",
    "Sanitizer",
    "TokenizeError",
    "sanitize",
]
