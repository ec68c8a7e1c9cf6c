"""Main entry point for the QuestFit API server"""
import argparse
import logging
import uvicorn
from src.config import validate_config, LOG_LEVEL

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Validate configuration and serve the API"""
    parser = argparse.ArgumentParser(description="Run the QuestFit API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args()

    logger.info("Validating configuration...")
    validate_config()

    logger.info(f"Starting API on {args.host}:{args.port}")
    uvicorn.run(
        "src.api.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
