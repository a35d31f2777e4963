# ================= Run Server =================
import logging

import uvicorn

from api import create_app
from config import APP_VERSION, HOST, PORT

logger = logging.getLogger("mvtintel.main")


def main() -> None:
    app = create_app()
    logger.info("Starting MVT-Intel v%s on %s:%s", APP_VERSION, HOST, PORT)
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
