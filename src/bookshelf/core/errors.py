"""Domain errors raised by services and translated to HTTP by the app."""


class ValidationAlertError(Exception):
    """A request that fails identifier validation before any write happens.

    ``error_key`` is the machine-readable code returned to clients
    (``idexists``, ``idnull``, ``idinvalid``, ``idnotfound``). A missing
    update target keeps its ``idnotfound`` code but answers 404.
    """

    def __init__(self, message: str, entity_name: str, error_key: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.entity_name = entity_name
        self.error_key = error_key

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.entity_name}.{self.error_key}: {self.message})"


class EntityNotFoundError(LookupError):
    """The requested entity does not exist in the primary store."""

    def __init__(self, entity_name: str, entity_id: object):
        super().__init__(f"{entity_name} {entity_id} not found")
        self.entity_name = entity_name
        self.entity_id = entity_id
