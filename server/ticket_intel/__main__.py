# __main__.py
import os

import uvicorn

from .api import app, logger

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8001"))
    logger.info("Starting Ticket-Intel on port %s", port)
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level="info",
        access_log=True,
    )
