"""Document indexing service package."""

from .router import get_index_service, get_index_service_instance, reset_index_service, router

__all__ = ["router", "get_index_service", "get_index_service_instance", "reset_index_service"]
