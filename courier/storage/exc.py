"""Storage related errors
"""


class StorageError(RuntimeError):
    """Base class for storage errors"""

    code: int = 500

    def as_dict(self) -> dict[str, str | int]:
        return {"message": str(self), "code": self.code}


class ObjectNotFoundError(StorageError):
    code = 404


class InvalidObjectError(StorageError):
    code = 422
