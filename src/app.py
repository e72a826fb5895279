"""
Sycamore Church Backend API Server
Core functionality: Members, Teams, Events, Attendance, Giving, Communities, Content, Forms
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import ALLOWED_ORIGINS
from database.connection import init_database, close_database
from api.routes import (
    health, auth, mobile_auth, users, members, teams, tasks, events, mobile_events,
    attendance, mobile_attendance, giving, mobile_donations, communities, mobile_communities,
    blog, mobile_blog, comments, gallery, mobile_media, forms, form_submissions, mobile_forms,
    anniversaries, user_activities, mobile_members, maintenance
)
from utils.error_handling import setup_error_handling

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    await init_database()
    yield
    await close_database()

# FastAPI app initialization
app = FastAPI(
    title="Sycamore Church Backend",
    description="Backend API for church administration and the member mobile app",
    version="1.0.0",
    lifespan=lifespan
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Setup centralized error handling
setup_error_handling(app)

# Include API routes
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(mobile_auth.router, prefix="/api/auth/mobile", tags=["Mobile Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(members.router, prefix="/api/members", tags=["Members"])
app.include_router(teams.router, prefix="/api/teams", tags=["Teams"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(mobile_events.router, prefix="/api/mobile/events", tags=["Mobile Events"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(mobile_attendance.router, prefix="/api/mobile/attendance", tags=["Mobile Attendance"])
app.include_router(giving.router, prefix="/api/giving", tags=["Giving"])
app.include_router(mobile_donations.router, prefix="/api/mobile/donations", tags=["Mobile Donations"])
app.include_router(communities.router, prefix="/api/communities", tags=["Communities"])
app.include_router(mobile_communities.router, prefix="/api/mobile/communities", tags=["Mobile Communities"])
app.include_router(blog.router, prefix="/api/blog", tags=["Blog"])
app.include_router(mobile_blog.router, prefix="/api/mobile/blog", tags=["Mobile Blog"])
app.include_router(comments.router, prefix="/api/comments", tags=["Comments"])
app.include_router(gallery.router, prefix="/api/gallery", tags=["Gallery"])
app.include_router(mobile_media.router, prefix="/api/mobile/media", tags=["Mobile Media"])
app.include_router(forms.router, prefix="/api/forms", tags=["Forms"])
app.include_router(form_submissions.router, prefix="/api/form-submissions", tags=["Form Submissions"])
app.include_router(mobile_forms.router, prefix="/api/mobile/forms", tags=["Mobile Forms"])
app.include_router(anniversaries.router, prefix="/api/anniversaries", tags=["Anniversaries"])
app.include_router(user_activities.router, prefix="/api/user-activities", tags=["User Activities"])
app.include_router(mobile_members.router, prefix="/api/mobile", tags=["Mobile Members"])
app.include_router(maintenance.router, prefix="/api/maintenance", tags=["Maintenance"])

# FastAPI app instance is exported for use by uvicorn
# Server startup is handled by main.py at the project root
