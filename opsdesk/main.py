from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqladmin import Admin

from opsdesk.access.edge import add_edge_filter_middleware
from opsdesk.access.events import auth_events
from opsdesk.admin.auth import AdminAuth
from opsdesk.admin.views import ActivityLogAdmin, ProfileAdmin
from opsdesk.core.cors import add_cors_middleware
from opsdesk.core.email import init_resend
from opsdesk.core.exception_handlers import register_exception_handlers
from opsdesk.core.firebase import init_firebase
from opsdesk.core.http import close_http_clients
from opsdesk.core.logging import configure_logging
from opsdesk.core.request_logging import add_request_logging_middleware
from opsdesk.core.settings import get_settings
from opsdesk.db.engine import engine, session_factory
from opsdesk.profile.tracker import activity_tracker
from opsdesk.router import api_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_firebase()
    init_resend()
    activity_tracker.start(
        session_factory,
        throttle_seconds=get_settings().last_active_throttle_seconds,
    )
    yield
    await activity_tracker.stop()
    await auth_events.drain()
    await close_http_clients()


app = FastAPI(title="OpsDesk", version="0.1.0", lifespan=lifespan)

app.include_router(api_router)

# Starlette runs the last-added middleware first: CORS, request log, edge filter.
add_edge_filter_middleware(app)
add_request_logging_middleware(app)
add_cors_middleware(app)
register_exception_handlers(app)

# Mount SQLAdmin UI at /admin (SQLAdmin enables sessions via auth backend secret)
admin = Admin(
    app=app,
    engine=engine,
    authentication_backend=AdminAuth(),
)
admin.add_view(ProfileAdmin)
admin.add_view(ActivityLogAdmin)
