"""
Page objects for the component gallery.
"""

from .gallery_page import GalleryPage, ScenarioAssertionError, labels_match, normalize_label

__all__ = [
    "GalleryPage",
    "ScenarioAssertionError",
    "labels_match",
    "normalize_label",
]
