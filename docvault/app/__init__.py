from .application import DownloadApplication

__all__ = ["DownloadApplication"]
