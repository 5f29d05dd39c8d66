"""Services dependency for FastAPI."""

from propflow.runtime.services import Services, get_services


async def get_api_services() -> Services:
    """Get the process-wide services.

    Tests override this dependency with their own LocalRuntime services.
    """
    return get_services()
