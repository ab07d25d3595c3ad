class SyncException(Exception):
    """Base class for the errors surfaced to callers of the sync endpoints.

    Attributes:
        status_code (int): HTTP-like classification of the error.
    """

    status_code: "int" = 500


class ValidationException(SyncException):
    status_code = 400


class AuthorizationException(SyncException):
    status_code = 403

    def __init__(self, user_id: "str", conflict_id: "str"):
        super().__init__(
            f"User '{user_id}' is not allowed to resolve conflict '{conflict_id}'."
        )


class ConflictNotFoundException(SyncException):
    status_code = 404

    def __init__(self, conflict_id: "str"):
        super().__init__(f"Conflict '{conflict_id}' not found.")


class ConflictAlreadyResolvedException(SyncException):
    status_code = 409

    def __init__(self, conflict_id: "str"):
        super().__init__(f"Conflict '{conflict_id}' has already been resolved.")


class ResolutionFailedException(SyncException):
    status_code = 500

    def __init__(self, conflict_id: "str", reason: "str"):
        super().__init__(f"Failed to resolve conflict '{conflict_id}': {reason}")


class ItemNotFoundException(Exception):
    def __init__(self, item_type: "str", id: "str"):
        super(ItemNotFoundException, self).__init__(
            f"Item of type '{item_type}' and ID '{id}' not found."
        )


class UnknownEntityTypeException(Exception):
    def __init__(self, entity_type: "str"):
        super().__init__(f"Unknown entity type: {entity_type}")
