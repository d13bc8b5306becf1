"""Storage backends and upload intake."""

from .abstract_storage import ArtifactStorage
from .intake import store_upload
from .local_storage import LocalStorage

__all__ = ["ArtifactStorage", "LocalStorage", "store_upload"]
