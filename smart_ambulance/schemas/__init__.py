from .common import ApiResponse
from .session import (
    ActiveSessionResponse,
    AdminField,
    AdminFieldUpdate,
    AdminFieldUpdateResponse,
    HospitalSessionsResponse,
    MarkDoneRequest,
    MarkDoneResponse,
    OpenSessionsResponse,
    PatientStatus,
    SessionView,
    StartSessionResponse,
    VitalStatus,
)
from .telemetry import TelemetryFields, TelemetryReport, TelemetryResponse
from .call import (
    AcknowledgeCallRequest,
    AcknowledgeCallResponse,
    CallView,
    IncomingCallResponse,
    PartyKind,
    PlaceCallRequest,
    PlaceCallResponse,
)
from .device import HospitalItem, HospitalListResponse, ResolveDeviceResponse
from .auth import AmbulanceLoginRequest, HospitalLoginRequest, LoginResponse, SessionCheckResponse

__all__ = [
    "ApiResponse",
    "ActiveSessionResponse",
    "AdminField",
    "AdminFieldUpdate",
    "AdminFieldUpdateResponse",
    "HospitalSessionsResponse",
    "MarkDoneRequest",
    "MarkDoneResponse",
    "OpenSessionsResponse",
    "PatientStatus",
    "SessionView",
    "StartSessionResponse",
    "VitalStatus",
    "TelemetryFields",
    "TelemetryReport",
    "TelemetryResponse",
    "AcknowledgeCallRequest",
    "AcknowledgeCallResponse",
    "CallView",
    "IncomingCallResponse",
    "PartyKind",
    "PlaceCallRequest",
    "PlaceCallResponse",
    "HospitalItem",
    "HospitalListResponse",
    "ResolveDeviceResponse",
    "AmbulanceLoginRequest",
    "HospitalLoginRequest",
    "LoginResponse",
    "SessionCheckResponse",
]
