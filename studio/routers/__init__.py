"""
FastAPI routers.
"""
from studio.routers.health import router as health_router
from studio.routers.jobs import router as jobs_router
from studio.routers.results import router as results_router
from studio.routers.insights import router as insights_router

__all__ = ['health_router', 'jobs_router', 'results_router', 'insights_router']
