"""
Error types raised by the catalog services.

Views translate these into HTTP responses in one place (see core.decorators.json_action),
so services never build responses themselves.
"""


class CatalogError(Exception):
    """Base class for every error raised by core.services."""
    status_code = 500

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message


class ValidationFailed(CatalogError):
    """Input rejected before any write. `errors` maps field -> list of messages."""
    status_code = 400

    def __init__(self, errors, message='Invalid input'):
        super().__init__(message)
        self.errors = errors


class NotAuthorized(CatalogError):
    status_code = 403


class DocumentNotFound(CatalogError):
    status_code = 404

    def __init__(self, collection, doc_id):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class InvalidTransition(CatalogError):
    status_code = 409

    def __init__(self, action, current_status):
        super().__init__(f"Cannot {action} from status '{current_status}'")
        self.action = action
        self.current_status = current_status


class DanglingReference(CatalogError):
    """A referential field (category name/slug) points at nothing."""
    status_code = 400

    def __init__(self, field, value):
        super().__init__(f"{field} '{value}' does not exist")
        self.field = field
        self.value = value


class StoreUnavailable(CatalogError):
    status_code = 503


class ScanLimitExceeded(CatalogError):
    status_code = 503

    def __init__(self, collection, limit):
        super().__init__(f"{collection} holds more than {limit} matching documents")
        self.collection = collection
        self.limit = limit
