import logging

import uvicorn

from medassist.app import create_app
from medassist.core.config import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app(mount_ui=True)


def run():
    uvicorn.run("medassist.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
