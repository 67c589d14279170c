"""ASGI entry point for the invoice ledger service"""

import uvicorn
from config import ApplicationConfig
from src.api.app import create_app

app = create_app(ApplicationConfig)

if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host=ApplicationConfig.API_HOST,
        port=int(ApplicationConfig.API_PORT),
        reload=False,
        log_level=str(ApplicationConfig.LOG_LEVEL).lower(),
    )
