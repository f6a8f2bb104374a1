from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Base64UploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: Optional[str] = Field(None, alias='fileName')
    content_type: Optional[str] = Field(None, alias='contentType')
    base64_content: Optional[str] = Field(None, alias='base64Content')
