"""Main entry point for the Contact Address Service."""

import uvicorn
from contact_address_service.config.settings import settings
from contact_address_service.config.logging import setup_logging


def main():
    setup_logging()

    uvicorn.run(
        "contact_address_service.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        log_config=None,  # dictConfig from setup_logging stays in charge
    )


if __name__ == "__main__":
    main()
