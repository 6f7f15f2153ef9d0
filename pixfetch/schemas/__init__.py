from .models import (
    ErrorKind,
    EventKind,
    LoadedResource,
    LoadEvent,
    LoaderPolicy,
    RequestOptions,
    ResourceSource,
)

__all__ = [
    "ErrorKind",
    "EventKind",
    "LoadedResource",
    "LoadEvent",
    "LoaderPolicy",
    "RequestOptions",
    "ResourceSource",
]
