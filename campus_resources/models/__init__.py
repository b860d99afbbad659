from .stored_document import StoredDocument
