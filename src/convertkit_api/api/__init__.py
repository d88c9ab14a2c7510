"""Request pipeline and resource methods."""

from .client import ConvertKitAPI
from .pagination import build_pagination_params, paginate

__all__ = ["ConvertKitAPI", "build_pagination_params", "paginate"]
