"""Health check endpoint handler."""

from datetime import UTC, datetime

from fastapi.responses import JSONResponse

from login_facebook import __version__
from login_facebook.models.health import HealthCheckResponse
from login_facebook.users.directory import UserDirectory
from login_facebook.users.installer import Installer


async def health_check(installer: Installer, directory: UserDirectory) -> JSONResponse:
    """
    Handles the health check request.
    Returns a JSON response with the server's health status.
    """
    installed = installer.is_installed()
    response_model = HealthCheckResponse(
        status="healthy" if installed else "degraded",
        version=__version__,
        timestamp=datetime.now(UTC),
        installed=installed,
        users=len(directory.find_by_role(installer.role_name)) if installed else 0,
    )

    return JSONResponse(content=response_model.model_dump(mode="json"))
