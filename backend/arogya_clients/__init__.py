from .geoapify import GeoapifyGeocoder, GeoapifyPlacesClient
from .groq import GroqTextGenerator

__all__ = ["GeoapifyGeocoder", "GeoapifyPlacesClient", "GroqTextGenerator"]
