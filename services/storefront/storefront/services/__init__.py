# Initialize the active image provider (selected by settings.image_provider)
from storefront.config import settings

_image_provider = None


def get_image_provider():
    """Get the configured image provider instance"""
    global _image_provider
    if _image_provider is None:
        if settings.image_provider == "local":
            from storefront.services.image_providers.local_provider import LocalImageProvider
            _image_provider = LocalImageProvider()
        else:
            from storefront.services.image_providers.cloudinary_provider import CloudinaryImageProvider
            _image_provider = CloudinaryImageProvider()
    return _image_provider
