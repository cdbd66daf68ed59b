class PlumbError(Exception):
    """Base class for every error the object store raises."""


class NotFoundError(PlumbError):
    def __init__(self, address: str):
        super().__init__(f"Object {address} not found")
        self.address = address


class FormatError(PlumbError):
    pass


class IOFailure(PlumbError):
    pass


class UnsupportedEntryError(PlumbError):
    def __init__(self, path: str):
        super().__init__(f"Unsupported directory entry: {path}")
        self.path = path


class ConfigError(PlumbError):
    pass


class UsageError(PlumbError):
    def __init__(self, message: str, usage: str = ""):
        super().__init__(message)
        self.usage = usage
