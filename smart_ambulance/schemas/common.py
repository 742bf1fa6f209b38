from pydantic import BaseModel, ConfigDict


class ApiResponse(BaseModel):
    """Envelope shared by every endpoint: a success flag plus a readable message."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = ""
