import logging
import os

from app import create_app
from config import HOST, PORT
from utils.async_helpers import shutdown_rpc_workers
from utils.logging_utils import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = create_app()


if __name__ == '__main__':
    logger.info("Workflow runtime listening on http://%s:%d", HOST, PORT)
    flask_debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    try:
        app.run(debug=flask_debug, host=HOST, port=PORT)
    finally:
        shutdown_rpc_workers()
