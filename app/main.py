# app/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
import logging

# Импортируем роутеры
from app.api.admin import router as admin_router
from app.api.analytics import router as analytics_router
from app.api.auth import router as auth_router
from app.api.comment import router as comment_router
from app.api.form import router as form_router
from app.api.like import router as like_router
from app.api.realtime import router as realtime_router
from app.api.tag import router as tag_router
from app.api.template import router as template_router

from app.core.settings import settings
from app.core.exceptions import (
    AuthenticationError,
    BaseAppException,
    InternalError,
    RequiredAnswersMissing,
)
from app.database import engine
from app.models import Base
from app.services.realtime import outbox

# Логирование
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="FormBuilder API",
    version="1.0.0",
    description="Form templates, submissions, likes, comments and admin tools",
)

# Middlewares
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Роутеры
app.include_router(auth_router)
app.include_router(template_router)
app.include_router(form_router)
app.include_router(like_router)
app.include_router(comment_router)
app.include_router(tag_router)
app.include_router(admin_router)
app.include_router(analytics_router)
app.include_router(realtime_router)

# Health check & root
@app.get("/", tags=["Health"])
def root():
    return {"status": "FormBuilder API is running!"}

@app.get("/health", tags=["Health"])
def health():
    return {"ok": True}

@app.on_event("startup")
async def startup_event():
    logger.info("Starting FormBuilder API")
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
    outbox.start()

@app.on_event("shutdown")
async def shutdown_event():
    await outbox.stop()
    logger.info("Stopping FormBuilder API")

# Exception handlers

@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    content = {"detail": exc.detail}
    if isinstance(exc, RequiredAnswersMissing):
        content["missing_question_ids"] = exc.question_ids
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": InternalError().detail})

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
