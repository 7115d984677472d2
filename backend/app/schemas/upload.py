"""
StayBook Backend — Upload Schemas
===================================
"""

from pydantic import BaseModel, Field


class UploadByLinkRequest(BaseModel):
    link: str = Field(
        min_length=1,
        max_length=2048,
        description="Absolute http(s) URL of an image to download and store",
    )
