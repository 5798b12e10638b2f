import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careercoach.config import settings
from careercoach.database import engine, Base
from careercoach.logging_config import configure_logging
from careercoach.routes import assessments, dashboard, health, users
# Import all models so their tables are registered on Base
from careercoach import models  # noqa: F401

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG
)

# CORS configuration - allow frontend URL from environment or default to all origins
allowed_origins = [settings.FRONTEND_URL] if settings.FRONTEND_URL != "*" else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    configure_logging(settings.LOG_LEVEL)

    if not settings.GEMINI_API_KEY.strip():
        logger.warning("GEMINI_API_KEY is missing. Assessment generation will fail until it is set.")
    if not settings.JWT_SECRET_KEY:
        logger.warning("JWT_SECRET_KEY is missing. Every request will be treated as anonymous.")

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")


app.include_router(health.router)
app.include_router(users.router)
app.include_router(assessments.router)
app.include_router(dashboard.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "careercoach.main:app",
        host="127.0.0.1",
        port=8001,
        reload=False
    )
