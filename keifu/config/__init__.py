from keifu.config.settings import Settings

__all__ = ["Settings"]
