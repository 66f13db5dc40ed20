from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from ride_notifier.api.routes import events
from ride_notifier.core.errors import MalformedEventError
from ride_notifier.core.exceptions import global_exception_handler, http_exception_handler, malformed_event_exception_handler, request_validation_exception_handler
from ride_notifier.core.lifespan import lifespan

__version__ = "0.1.0"

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(MalformedEventError, malformed_event_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(events.router, prefix="/events", tags=["events"])
