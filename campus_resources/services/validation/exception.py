from fastapi import HTTPException, status


class ResourceValidationError(ValueError):
    """Caller input violates a precondition. The message is shown to the user as is."""


class PermissionDeniedError(ResourceValidationError):
    pass


class ResourceNotFoundError(LookupError):
    pass


class ResourceTransportError(RuntimeError):
    """An identity, document store or binary store call failed."""


async def validation_exception(exc: ResourceValidationError) -> None:
    if isinstance(exc, PermissionDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def not_found_exception(detail: str = "Resource not found") -> None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


async def transport_exception(exc: ResourceTransportError) -> None:
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(exc) or "An upstream service failed. Please try again."
    )


async def unexpected_exception() -> None:
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal error occurred. Please try again later."
    )
