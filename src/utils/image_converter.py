from __future__ import annotations
import base64


def to_base64(image_data: bytes) -> str:
    # uploaded payloads are forwarded as-is, never re-encoded
    if not isinstance(image_data, bytes):
        raise ValueError(f"Unsupported image data type: {type(image_data)}")
    return base64.b64encode(image_data).decode('utf-8')
