"""
Errors raised while copying a tree of images.

Every failure carries the operation that failed and the path it failed on,
so the single fatal message printed by the CLI is enough to diagnose it.
"""


class IgCopyError(Exception):
    operation = "process"

    def __init__(self, path, cause=None, operation=None):
        self.path = str(path)
        self.cause = cause
        if operation:
            self.operation = operation
        super().__init__(str(self))

    def __str__(self):
        message = f"{self.operation} \"{self.path}\""
        if self.cause is not None:
            message += f": {self.cause}"
        return message


class TraversalError(IgCopyError):
    operation = "failed to read directory"


class PathComputationError(IgCopyError):
    operation = "failed to get relative path for"


class DirectoryCreationError(IgCopyError):
    operation = "failed to create directory"


class StorageOpenError(IgCopyError):
    operation = "failed to open db"


class StorageReadError(IgCopyError):
    operation = "failed to check db for"


class StorageWriteError(IgCopyError):
    operation = "failed to register in db"


class CopyError(IgCopyError):
    operation = "failed to copy file to"
