"""
Financial Analysis API Application Factory
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from ..config import get_config
from ..errors import IntegrityError, NotFoundError, ValidationError
from ..logging_config import setup_logging
from .customers import router as customers_router
from .accounts import router as accounts_router
from .transactions import router as transactions_router
from .expenses import router as expenses_router
from .reports import router as reports_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)

    app = FastAPI(
        title="Financial Analysis API",
        description="Customers, accounts, transactions, expenses and aggregate reports",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Domain errors map to client errors; rejected writes leave no mutation behind
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    # Include routers
    app.include_router(customers_router, prefix="/customers", tags=["Customers"])
    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
    app.include_router(expenses_router, prefix="/expenses", tags=["Expenses"])
    app.include_router(reports_router, prefix="/reports", tags=["Reports"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "financial_analysis_api",
            "version": "1.0.0"
        }

    # Root endpoint
    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Financial Analysis API",
            "version": "1.0.0",
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "customers": "/customers",
                "accounts": "/accounts",
                "transactions": "/transactions",
                "expenses": "/expenses",
                "reports": "/reports"
            }
        }

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "financial_analysis.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
