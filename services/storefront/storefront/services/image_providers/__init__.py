# Package exports - these allow cleaner imports like:
# from storefront.services.image_providers import ImageProvider, LocalImageProvider
from storefront.services.image_providers.base import ImageProvider
from storefront.services.image_providers.cloudinary_provider import CloudinaryImageProvider
from storefront.services.image_providers.local_provider import LocalImageProvider
