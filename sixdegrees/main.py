from contextlib import asynccontextmanager
from fastapi import FastAPI
from sixdegrees.db.neo4j_connector import close_driver

# Routers
from sixdegrees.api.routers.graph import router as graph_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure resources (like the Neo4j driver) are closed on shutdown."""
    try:
        yield
    finally:
        close_driver()


app = FastAPI(title="Six Degrees of Channels", version="0.1", lifespan=lifespan)

app.include_router(graph_router)
