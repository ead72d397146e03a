from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_pagination import add_pagination
from loguru import logger

# --- ADMIN ROUTES ---
from app.api.v1.admin import discounts as admin_discounts
from app.api.v1.admin import lecturer as admin_lecturer
from app.api.v1.admin import livestream as admin_livestream
from app.api.v1.admin import message as admin_message
from app.api.v1.admin import subscription as admin_subscription
from app.api.v1.admin import user as admin_user

# ===== IMPORT ROUTERS =====
from app.api.v1 import auth

# --- LECTURER ROUTES ---
from app.api.v1.lecturer import activity, chapter, students
from app.api.v1.lecturer import courses as lecturer_courses
from app.api.v1.lecturer import livestream as lecturer_livestream
from app.api.v1.lecturer import quiz as lecturer_quiz

# --- SHARED ROUTES ---
from app.api.v1.shares import certificate, exchange_rates, timetable, wallets

# --- USER ROUTES ---
from app.api.v1.user import courses as user_courses
from app.api.v1.user import dashboard, learning
from app.api.v1.user import discounts as user_discounts
from app.api.v1.user import livestream as user_livestream
from app.api.v1.user import quiz as user_quiz
from app.api.v1.user import subscription as user_subscription
from app.core.scheduler import scheduler, start_scheduler
from app.core.settings import settings

# --- MIDDLEWARE ---
from app.middleware.request_context import RequestContextMiddleware
from app.middleware.role_gate import RoleGateMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):

    # ================================
    # 1) GLOBAL HTTP CLIENT
    # ================================
    app.state.http = httpx.AsyncClient(timeout=30)
    logger.info("🌐 HTTP client started")

    # ================================
    # 2) START APSCHEDULER
    # ================================
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
        logger.info("⏱ Scheduler started")

    try:
        yield
    finally:
        # ================================
        # 3) CLOSE HTTP CLIENT
        # ================================
        await app.state.http.aclose()
        logger.info("🌐 HTTP client closed")

        # ================================
        # 4) STOP SCHEDULER
        # ================================
        if scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("🛑 Scheduler stopped")


# ===== APP CONFIG =====
app = FastAPI(
    title="MHM Academy API",
    description="Learning management backend: courses, quizzes, livestreams and subscriptions",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.add_middleware(RoleGateMiddleware)
app.add_middleware(RequestContextMiddleware)
add_pagination(app)
prefix = "/api/v1"

# ===== REGISTER ROUTERS =====

# --- Share ---
app.include_router(auth.router, prefix=prefix)
app.include_router(wallets.router, prefix=prefix)
app.include_router(certificate.router, prefix=prefix)
app.include_router(timetable.router, prefix=prefix)
app.include_router(exchange_rates.router, prefix=prefix)

# --- USER ROUTES ---
app.include_router(user_courses.router, prefix=prefix)
app.include_router(learning.router, prefix=prefix)
app.include_router(user_quiz.router, prefix=prefix)
app.include_router(user_livestream.router, prefix=prefix)
app.include_router(user_discounts.router, prefix=prefix)
app.include_router(user_subscription.router, prefix=prefix)
app.include_router(dashboard.router, prefix=prefix)

# --- LECTURER ROUTES ---
app.include_router(lecturer_courses.router, prefix=prefix)
app.include_router(chapter.router, prefix=prefix)
app.include_router(lecturer_quiz.router, prefix=prefix)
app.include_router(lecturer_livestream.router, prefix=prefix)
app.include_router(activity.router, prefix=prefix)
app.include_router(students.router, prefix=prefix)

# --- ADMIN ROUTES ---
app.include_router(admin_user.router, prefix=prefix)
app.include_router(admin_lecturer.router, prefix=prefix)
app.include_router(admin_discounts.router, prefix=prefix)
app.include_router(admin_livestream.router, prefix=prefix)
app.include_router(admin_message.router, prefix=prefix)
app.include_router(admin_subscription.router, prefix=prefix)


# ===== ROOT =====
@app.get("/")
async def hello_world():
    return {"message": "Hello world"}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
