"""
Guest Workflow Runtime API entry point
"""
import uvicorn

from workflow_runtime.config import RuntimeSettings, configure_logging


if __name__ == "__main__":
    settings = RuntimeSettings.from_env()
    configure_logging(settings)

    uvicorn.run(
        "workflow_runtime.api:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )
