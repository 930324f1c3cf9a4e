from .objects import ObjectsClient, error_message, is_success

__all__ = ["ObjectsClient", "error_message", "is_success"]
