import logging
from typing import Optional

from fastapi import APIRouter

from ..core.errors import UnknownDeviceError, ValidationError
from ..repositories import repository
from ..schemas import HospitalItem, HospitalListResponse, ResolveDeviceResponse

router = APIRouter()
log = logging.getLogger(__name__)


@router.get("/ambulances/resolve", response_model=ResolveDeviceResponse)
def resolve_ambulance(mac: Optional[str] = None):
    """
    Look up the ambulance a field device belongs to.

    The device sends its MAC address; separators (``:``, ``-``, ``.``, ``_``,
    spaces) and case are ignored when matching the registered hardware code.
    """
    if not mac or not mac.strip():
        raise ValidationError("MAC address is required", ambulance_id="")
    ambulance = repository.find_ambulance_by_hardware_code(mac)
    if ambulance is None:
        code = repository.normalize_hardware_code(mac)
        raise UnknownDeviceError(
            "No ambulance found with this MAC address",
            ambulance_id="",
            hint=f"Please register this device in the ambulance table with hardware_code: {code}",
        )
    log.info("Ambulance ID requested - MAC: %s, ID: %s", mac, ambulance.ambulance_id)
    return ResolveDeviceResponse(
        message="Ambulance ID found successfully",
        ambulance_id=ambulance.ambulance_id,
        attendant_name=ambulance.attendant_name,
    )


@router.get("/hospitals", response_model=HospitalListResponse)
def list_hospitals():
    hospitals = [
        HospitalItem(hospital_id=h.hospital_id, name=h.name, doctor_name=h.doctor_name)
        for h in repository.list_hospitals()
    ]
    return HospitalListResponse(hospitals=hospitals, count=len(hospitals))
