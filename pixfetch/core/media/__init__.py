from .decode import decode_image
from .engine import ImageLoader, clear_all_cache, clear_cache_entry, default_loader, get
from .loader import ResourceLoader
from .request import EventHandler, ImageRequest
from .targets import CallableTarget, FadeableTarget, ImageTarget, as_target

__all__ = [
    "decode_image",
    "ImageLoader",
    "default_loader",
    "get",
    "clear_cache_entry",
    "clear_all_cache",
    "ResourceLoader",
    "ImageRequest",
    "EventHandler",
    "ImageTarget",
    "FadeableTarget",
    "CallableTarget",
    "as_target",
]
