import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy import select
from sensore.config import get_settings
from sensore.database import engine, Base, async_session
from sensore.exceptions import AccountError
from sensore.services.account_service import ALL_FIELDS_REQUIRED
from sensore.routers import dashboard
from sensore.routers import auth as auth_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("sensore")

DEMO_USERS = [
    {"username": "admin",     "email": "admin@graphenetrace.com",    "user_type": "admin",
     "first_name": "Admin", "last_name": "User"},
    {"username": "dr_smith",  "email": "dr.smith@graphenetrace.com", "user_type": "clinician",
     "first_name": "John",  "last_name": "Smith"},
    {"username": "patient01", "email": "patient01@example.com",      "user_type": "patient",
     "first_name": "Jane",  "last_name": "Doe"},
]


async def seed_demo_users():
    """Create the 3 demo accounts if they don't exist. Idempotent."""
    from sensore.models.user import User
    from sensore.services.account_service import hash_password

    password_hash = hash_password(settings.demo_user_password, settings.bcrypt_rounds)
    created = 0
    async with async_session() as session:
        for u in DEMO_USERS:
            existing = await session.scalar(select(User).where(User.username == u["username"]))
            if not existing:
                session.add(User(password_hash=password_hash, is_active=True, **u))
                created += 1
        await session.commit()
    log.info("Demo accounts seeded (%d created)", created)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables then seed demo users
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.seed_demo_users:
        await seed_demo_users()
    log.info("Sensore Health API ready")
    yield
    # Shutdown
    log.info("Shutting down Sensore Health API")
    await engine.dispose()


app = FastAPI(
    title="Sensore Health",
    description="Pressure monitoring accounts, sessions and dashboard statistics",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Middleware to add no-cache headers so session-bearing responses are never cached."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


app.add_middleware(NoCacheMiddleware)


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def auth_body_error_handler(request: Request, exc: RequestValidationError):
    """Auth endpoints answer malformed bodies the same way as blank fields."""
    if request.url.path.startswith("/api/auth/"):
        return JSONResponse(status_code=400, content={"error": ALL_FIELDS_REQUIRED})
    return await request_validation_exception_handler(request, exc)


app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "sensore-health"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("sensore.main:app", host="0.0.0.0", port=8000)
