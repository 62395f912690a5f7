"""FastAPI application entry point."""
from fastapi import FastAPI

from notifier.routers import health, notifications


app = FastAPI(title="Match Notifier API")

# Include routers
app.include_router(health.router)
app.include_router(notifications.router)
