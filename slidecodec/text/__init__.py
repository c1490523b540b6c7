"""Text structure codec."""

from slidecodec.text.codec import DecodedText, RunDefaults, TextStructureCodec, sanitize_link

__all__ = [
    "DecodedText",
    "RunDefaults",
    "TextStructureCodec",
    "sanitize_link",
]
