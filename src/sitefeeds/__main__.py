import uvicorn

from sitefeeds.config import HOST, PORT
from sitefeeds.logging_config import configure_logging
from sitefeeds.main import create_app


def main() -> None:
    configure_logging()
    uvicorn.run(create_app(), host=HOST, port=PORT, log_config=None, proxy_headers=True)


if __name__ == "__main__":
    main()
