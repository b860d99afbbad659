import logging
from typing import Callable, Optional, Protocol

import httpx

from campus_resources.configs.settings import settings
from campus_resources.cores.file_validator import FileValidator
from campus_resources.schemas.upload_schema import FileUpload, UploadResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class BinaryStoreError(RuntimeError):
    pass


class BinaryStore(Protocol):
    async def upload(self, file: FileUpload, progress: Optional[ProgressCallback] = None) -> UploadResult: ...

    async def delete_by_token(self, token: str) -> None: ...


def _timeout() -> httpx.Timeout:
    return httpx.Timeout(60.0)


class CloudinaryBinaryStore:
    """
    Unsigned Cloudinary uploads.

    Images go to the `image` endpoint; everything else to `raw` so PDFs and
    office files are stored untouched. The delete token returned by an upload
    is the only credential this service keeps for removing the file later.
    """

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        upload_preset: Optional[str] = None,
        api_base: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.upload_preset = upload_preset or settings.CLOUDINARY_UPLOAD_PRESET
        self.api_base = (api_base or settings.CLOUDINARY_API_BASE).rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=_timeout())

    def upload_endpoint(self, content_type: Optional[str]) -> str:
        kind = "image" if FileValidator.is_image(content_type) else "raw"
        return f"{self.api_base}/{self.cloud_name}/{kind}/upload"

    async def upload(self, file: FileUpload, progress: Optional[ProgressCallback] = None) -> UploadResult:
        if not file.content:
            raise BinaryStoreError("Cannot upload empty file")

        endpoint = self.upload_endpoint(file.content_type)
        if progress:
            progress(0)
        try:
            async with self._client() as client:
                response = await client.post(
                    endpoint,
                    data={"upload_preset": self.upload_preset},
                    files={"file": (file.filename, file.content, file.content_type)},
                    headers={"X-Requested-With": "XMLHttpRequest"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise BinaryStoreError(
                f"Cloudinary upload failed ({e.response.status_code}): {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise BinaryStoreError(f"Cloudinary upload failed: {e}") from e

        url = payload.get("secure_url") or payload.get("url")
        if not url:
            raise BinaryStoreError("Cloudinary upload response did not include a URL")
        if progress:
            progress(100)

        logger.info(
            f"Uploaded {file.filename} to Cloudinary "
            f"(resource_type={payload.get('resource_type')}, public_id={payload.get('public_id')})"
        )
        return UploadResult(
            url=url,
            delete_token=payload.get("delete_token"),
            resource_type=payload.get("resource_type"),
            original_filename=payload.get("original_filename"),
            format=payload.get("format"),
            public_id=payload.get("public_id"),
        )

    async def delete_by_token(self, token: str) -> None:
        endpoint = f"{self.api_base}/{self.cloud_name}/delete_by_token"
        try:
            async with self._client() as client:
                response = await client.post(endpoint, data={"token": token})
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BinaryStoreError(
                f"Cloudinary delete_by_token failed ({e.response.status_code})"
            ) from e
        except httpx.HTTPError as e:
            raise BinaryStoreError(f"Cloudinary delete_by_token failed: {e}") from e
