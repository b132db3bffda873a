"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from . import __version__
from .accounts.router import router as accounts_router
from .admins.router import router as admins_router
from .audit.router import router as audit_router
from .admins.service import AdminService
from .core.audit_service import ActorDirectory, AuditLogEngine
from .database import Base, SessionLocal, engine
from .config import settings
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .storage import AccountStore, AdminStore, EventStore

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)


def bootstrap_admin_if_needed():
    """Create the first super admin from settings when the admin table is empty."""
    db = SessionLocal()
    try:
        audit = AuditLogEngine(EventStore(db), directory=ActorDirectory(AccountStore(db), AdminStore(db)))
        AdminService(AdminStore(db), audit).bootstrap_super_admin()
    finally:
        db.close()


logger.info("Starting Credentialing API...")
try:
    bootstrap_admin_if_needed()
except Exception as e:
    logger.error(f"Bootstrap process failed: {str(e)}")

# Create FastAPI application
app = FastAPI(
    title="Credentialing API",
    description="Verification workflow, role-based authorization and audit log for practitioners and dispensaries",
    version=__version__,
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
origins = [
    "http://localhost:3000",  # Frontend development server
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(admins_router)
app.include_router(accounts_router)
app.include_router(audit_router)

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to Credentialing API", "version": __version__}

# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": "connected"}
