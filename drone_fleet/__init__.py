"""Drone fleet core package.

Equipment inventory, accessory catalog and links, deletion history and the
equipment display sequence, served through a FastAPI app.
"""

from .services.compatibility import get_compatible_models, is_accessory_compatible

__all__ = ["get_compatible_models", "is_accessory_compatible"]
