from studio.repositories.job_repository import JobRepository
from studio.repositories.result_repository import ResultRepository

__all__ = ['JobRepository', 'ResultRepository']
