"""Fehlerklassen des Sharing-Workflows und ihre HTTP-Abbildung.

Services werfen diese Fehler, Router reichen sie unverändert durch. Der
Exception-Handler rendert sie im selben Format wie ``HTTPException``
(``{"detail": ...}``), damit das Frontend nur eine Fehlerform kennt.

Nur ``ConflictError`` darf vom Aufrufer automatisch wiederholt werden, und
auch das nur nach erneutem Lesen des aktuellen Stands.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SharingError(Exception):
    """Basisklasse - alle Workflow-Fehler gehen an den direkten Aufrufer."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SharingError):
    """Ungültige Eingabe (z.B. Enddatum vor Startdatum)."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(SharingError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(SharingError):
    """Mandant darf diese Änderung nicht vornehmen."""
    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateError(SharingError):
    """Operation ist im aktuellen Status nicht erlaubt."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(SharingError):
    """Transfer-Statuswechsel liegt nicht im erlaubten Graphen."""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(SharingError):
    """Atomarer Statuswechsel hat gegen eine parallele Änderung verloren."""
    status_code = status.HTTP_409_CONFLICT


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SharingError)
    async def sharing_error_handler(request: Request, exc: SharingError):
        if isinstance(exc, ConflictError):
            logger.info("Konflikt bei %s %s: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
