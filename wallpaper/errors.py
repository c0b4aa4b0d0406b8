from __future__ import annotations


class WallpaperError(RuntimeError):
    pass


class ConfigError(WallpaperError):
    pass


class StoreError(WallpaperError):
    pass


class NoValidImageError(WallpaperError):
    pass


class NoValidMonitorError(WallpaperError):
    pass


class PresenterError(WallpaperError):
    pass


class IpcError(WallpaperError):
    pass


class IpcDecodeError(IpcError, ValueError):
    pass


class SchedulerError(WallpaperError):
    pass


class IpcConnectError(IpcError):
    pass
