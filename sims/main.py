from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sims.api.v1.announcements.router import router as announcements_router
from sims.api.v1.attendance.router import router as attendance_router
from sims.api.v1.auth.router import router as auth_router
from sims.api.v1.fees.router import router as fees_router
from sims.api.v1.messages.router import router as messages_router
from sims.api.v1.payments.router import router as payments_router
from sims.api.v1.people.router import router as people_router
from sims.core.config import settings
from sims.core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="SIMS Gateway")

    # CORS: allow the browser front-end to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(fees_router)
    app.include_router(payments_router)
    app.include_router(attendance_router)
    app.include_router(announcements_router)
    app.include_router(messages_router)
    app.include_router(people_router)

    return app


app = create_app()
