from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.database import init_db
from core.errors import register_exception_handlers
from core.logging_conf import setup_logging
from core.settings import get_settings
from modules.royalty.router import router as royalty_router
from modules.royalty_settings.router import router as royalty_settings_router
from modules.users.router import router as users_router


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    app = FastAPI(title=settings.app_name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(users_router)
    app.include_router(royalty_settings_router)
    app.include_router(royalty_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()


@app.on_event("startup")
def on_startup():
    init_db()
