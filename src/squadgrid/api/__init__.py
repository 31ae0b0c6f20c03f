from .app import create_app  # re-export

__all__ = ["create_app"]
