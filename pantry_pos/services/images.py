"""
Product images, stored inline on the product as ``data:`` URLs.
"""
import base64

ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp", "image/svg+xml"}


def to_data_url(content: bytes, content_type: str) -> str:
    """Encode raw image bytes as ``data:<type>;base64,<payload>``."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"
