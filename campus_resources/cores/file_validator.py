from pathlib import Path
from typing import Optional

from campus_resources.schemas.upload_schema import FileUpload
from campus_resources.services.validation.exception import ResourceValidationError


class FileValidator:
    """Checks the declared type of a study file before anything is sent upstream."""

    ALLOWED_MIME_TYPES = {
        "pdf": ["application/pdf"],
        "presentation": [
            "application/vnd.ms-powerpoint",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        ],
        "document": [
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ],
        "image": ["image/png", "image/jpeg", "image/gif"],
    }

    UNSUPPORTED_TYPE_MESSAGE = "Unsupported file type. Please upload PDF, PPT, DOC, or an image."

    @staticmethod
    def allowed_mime_types() -> set[str]:
        return {mime for mimes in FileValidator.ALLOWED_MIME_TYPES.values() for mime in mimes}

    @staticmethod
    def is_image(content_type: Optional[str]) -> bool:
        return (content_type or "").lower().startswith("image/")

    @staticmethod
    def validate_file(file: Optional[FileUpload]) -> dict:
        """
        Validates an upload by its declared MIME type.

        Returns:
            dict with the validated file name, MIME type, extension and size

        Raises:
            ResourceValidationError if the file is missing, empty or of a
            type outside the allowed set
        """
        if file is None or not file.filename:
            raise ResourceValidationError("Please select a file to upload.")
        if not file.content:
            raise ResourceValidationError(f"The file {file.filename} is empty.")

        mime = (file.content_type or "").lower()
        if mime not in FileValidator.allowed_mime_types():
            raise ResourceValidationError(FileValidator.UNSUPPORTED_TYPE_MESSAGE)

        return {
            "original_filename": file.filename,
            "mime_type": mime,
            "extension": Path(file.filename).suffix.lower(),
            "file_size": len(file.content),
            "validated": True,
        }
