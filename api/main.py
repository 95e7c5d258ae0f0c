"""
FastAPI application serving metrics and health for the ingestion process
"""

from fastapi import FastAPI
from api.routes import health, metrics

app = FastAPI(
    title="Stack/GitHub Ingestion Service",
    description="Operational endpoints for the Stack Overflow and GitHub ingestion loop",
    version="1.0.0",
    docs_url=None,
    redoc_url=None
)

# Store engines are attached by the entry point: app.state.engines = {name: AsyncEngine}
app.state.engines = {}

app.include_router(health.router)
app.include_router(metrics.router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Stack/GitHub Ingestion Service",
        "version": "1.0.0",
        "endpoints": {
            "metrics": "/metrics",
            "health": "/health"
        }
    }
