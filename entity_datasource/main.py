"""
Main application entry point.
"""

from fastapi import FastAPI
from entity_datasource.api.v1.datasource_endpoints import router as datasource_router

app = FastAPI(
    title="Entity Datasource API",
    description="Exposes stored records and their translations to a search index.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Include API routers
app.include_router(datasource_router, prefix="/api/v1", tags=["datasource"])

@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Entity Datasource API",
        "docs": "/docs",
        "health": "/api/v1/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("entity_datasource.main:app", host="0.0.0.0", port=8000, reload=True)
