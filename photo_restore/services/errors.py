"""Exceptions raised by the library services"""


class LibraryError(Exception):
    """Base exception for photo library operations"""
    pass


class NotFoundError(LibraryError):
    """Row does not exist, is soft-deleted, or belongs to another user"""

    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ValidationFailedError(LibraryError):
    """Request is well-formed but refers to something unusable"""
    pass


class FolderCycleError(LibraryError):
    """Moving a folder would make it its own ancestor"""
    pass


class InvalidJobTransitionError(LibraryError):
    """Enhancement job status change outside queued -> running -> terminal"""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move enhancement job from {current} to {requested}")
