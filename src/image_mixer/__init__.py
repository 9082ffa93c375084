"""Image Mixer: прокси к AI-провайдерам редактирования изображений."""

__version__ = "0.1.0"
