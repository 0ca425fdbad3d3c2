"""Identity resolution capabilities."""

from .resolver import HandleResolver, XrpcHandleResolver, normalize_handle

__all__ = ["HandleResolver", "XrpcHandleResolver", "normalize_handle"]
