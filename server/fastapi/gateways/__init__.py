from .weather import WeatherGateway
from .images import generate_image, IMAGE_PROMPT

__all__ = ["WeatherGateway", "generate_image", "IMAGE_PROMPT"]
