from typing import List, Optional

from pydantic import BaseModel

from .common import ApiResponse


class ResolveDeviceResponse(ApiResponse):
    """Response after looking up an ambulance by the MAC of its device."""
    ambulance_id: str = ""
    attendant_name: Optional[str] = None


class HospitalItem(BaseModel):
    hospital_id: str
    name: str
    doctor_name: Optional[str] = None


class HospitalListResponse(ApiResponse):
    hospitals: List[HospitalItem]
    count: int
