"""
registry/errors.py

Error kinds raised by registry operations.

``status_code`` carries the HTTP-equivalent code for hosts that front the
registry with a request/response layer.
"""


class RegistryError(Exception):
    status_code = 500


class Unauthorized(RegistryError, PermissionError):
    """Caller lacks the role or ownership the mutation requires."""
    status_code = 403


class NotFound(RegistryError, LookupError):
    """Referenced case id does not exist."""
    status_code = 404

    def __init__(self, case_id: int):
        super().__init__(f"Case {case_id} not found.")
        self.case_id = case_id


class StorageError(RegistryError):
    """The backing store failed; no domain meaning attached."""
    status_code = 500
