"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer provides a clean separation between API routes and database operations,
following the Repository pattern. Pipeline rules come from app.services.pipeline;
nothing here interprets status strings on its own.
"""

from app.crud import activity_log, assessment, candidate, interview, job, training

__all__ = ["activity_log", "assessment", "candidate", "interview", "job", "training"]
