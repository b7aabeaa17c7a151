"""Main application entry point."""

import logging

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from rentledger.api.contracts import router as contracts_router
from rentledger.api.errors import ledger_error_handler, value_error_handler
from rentledger.services.errors import LedgerError
from rentledger.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI application with routers and error handlers."""
    app = FastAPI(title="rentledger", description="Contract payment allocation and reconciliation")
    app.include_router(contracts_router)
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="rentledger API server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    args = parser.parse_args()

    load_dotenv()
    setup_server_logging()
    logger.info(f"Starting Uvicorn server on {args.host}:{args.port}...")
    uvicorn.run(
        "rentledger.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
