"""
Scenario script for the gallery sanity check.
"""

from .gallery_scenarios import GalleryScenarios, Scenario

__all__ = [
    "GalleryScenarios",
    "Scenario",
]
