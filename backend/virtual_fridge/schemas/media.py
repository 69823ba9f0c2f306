from typing import Dict, Optional

from pydantic import Field

from virtual_fridge.schemas.common import ApiModel


class UploadData(ApiModel):
    image: str


class UploadResponse(ApiModel):
    message: str
    data: UploadData


class ProduceAnalysis(ApiModel):
    """What the vision model saw in a produce photo."""
    is_produce: bool = False
    category: Optional[str] = Field(default=None, description="fruit or vegetable")
    name: Optional[str] = None
    nutrients: Optional[Dict[str, str]] = None
