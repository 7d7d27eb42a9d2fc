"""SQLAlchemy ORM models."""

from omahub.models.base import Base
from omahub.models.brand import Brand
from omahub.models.catalogue import Catalogue
from omahub.models.favourite import Favourite
from omahub.models.platform_setting import PlatformSetting
from omahub.models.product import Product

__all__ = ["Base", "Brand", "Catalogue", "Favourite", "PlatformSetting", "Product"]
