from infrastructure.backend.entity_client import RestEntityBackend

__all__ = ["RestEntityBackend"]
