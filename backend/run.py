import uvicorn
import os

from shop_booking.core.config import load_config

if __name__ == "__main__":
    # Reads .env once; host and port come from API_HOST and PORT/API_PORT
    config = load_config()
    uvicorn.run(
        "shop_booking.main:get_app",
        factory=True,
        host=config.api_host,
        port=config.port,
        reload=os.getenv("APP_ENV", "production") == "development",
    )
