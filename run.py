import sys, asyncio
if sys.platform.startswith("win"):
    # loop compatível com psycopg async ANTES de o uvicorn criar o loop
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import uvicorn

from app.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "dev",
        log_level=settings.LOG_LEVEL.lower(),
    )
