"""Field decoding and encoding."""

from firebolt_cursor.decode.decoder import decode, decode_scalar
from firebolt_cursor.decode.encoder import encode, encode_row

__all__ = ["decode", "decode_scalar", "encode", "encode_row"]
