import logging

from .common import app
from .routers.notifications.endpoints import router as NotificationsEndpoints
from .routers.connections.endpoints import router as ConnectionsEndpoints
from .routers.db.endpoints import router as DebugEndpoints

logger = logging.getLogger(__name__)

# Include routers
app.include_router(NotificationsEndpoints)
app.include_router(ConnectionsEndpoints)
app.include_router(DebugEndpoints)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("connectup.main:app", host="0.0.0.0", port=8000, reload=True)
