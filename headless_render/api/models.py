from typing import Optional
from pydantic import BaseModel


class ServiceInfo(BaseModel):
    """
    Response model for the API root endpoint.
    """
    message: str
    version: str
    pool_size: int
    documentation_url: Optional[str] = None


class ErrorResponse(BaseModel):
    """
    Body returned for every classified render error.
    """
    detail: str
