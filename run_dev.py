import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# Configure logging before any application imports to ensure visibility
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(name)s - [%(levelname)s] - %(message)s'
)
logger = logging.getLogger("run_dev_script")

if __name__ == "__main__":
    project_root = Path(__file__).parent.resolve()
    dotenv_path = project_root / ".env"

    if dotenv_path.exists():
        logger.info(f".env file found at: {dotenv_path}")
        load_dotenv(dotenv_path=dotenv_path, override=True)
    else:
        logger.warning(f".env file not found at: {dotenv_path}. "
                       "Relying on OS environment variables or pydantic-settings defaults.")

    logger.info(f"OAUTHKIT_TOKEN_STORE_BACKEND: {os.getenv('OAUTHKIT_TOKEN_STORE_BACKEND')}")
    logger.info(f"OAUTHKIT_NONCE_STORE_BACKEND: {os.getenv('OAUTHKIT_NONCE_STORE_BACKEND')}")

    host = os.getenv("DEV_SERVER_HOST", "127.0.0.1")
    port = int(os.getenv("DEV_SERVER_PORT", "8000"))
    uvicorn_log_level = os.getenv("DEV_SERVER_LOG_LEVEL", "info").lower()
    reload_bool = os.getenv("DEV_SERVER_RELOAD", "false").lower() in ["true", "1", "yes", "on", "t"]

    logger.info(f"Starting Uvicorn server on {host}:{port} (reload: {reload_bool})")
    uvicorn.run(
        "oauthkit.main:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=uvicorn_log_level,
        reload=reload_bool
    )
