from pydantic import BaseModel
from typing import Any, Optional

class ApiResponse(BaseModel):
    success: bool = True
    status_code: int = 200
    message: str
    data: Optional[Any] = None
