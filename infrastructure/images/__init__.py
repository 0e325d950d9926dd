from infrastructure.images.http_image_loader import HttpImageLoader

__all__ = ["HttpImageLoader"]
