from .generator import DigestRenderer, RenderedDigest, generate_digest

__all__ = ["DigestRenderer", "RenderedDigest", "generate_digest"]
