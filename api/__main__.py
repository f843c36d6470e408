"""Run the API with uvicorn: ``python -m api``."""
import logging

import uvicorn

from config import get_settings


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = get_settings()
    # Deployed behind a TLS-terminating proxy; trust its forwarded headers.
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
