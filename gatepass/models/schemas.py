# =======================================================================================
# gatepass/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from .enums import ScanEvent

# ========== Envelope ==========
class ApiResponse(BaseModel):
    """Every successful JSON response uses this envelope."""
    success: bool = True
    statusCode: int = 200
    message: str
    data: Any = None

# ========== Visitor registration ==========
class SendCodeRequest(BaseModel):
    """Visitor details submitted with the code request."""
    email: Optional[str] = Field(None, max_length=255, description="Visitor email, the natural key")
    name: Optional[str] = Field(None, max_length=255)
    mobileNumber: Optional[str] = Field(None, max_length=20, description="10 digit mobile number")
    purpose: Optional[str] = Field(None, max_length=500)
    visitDateAndTime: Optional[str] = Field(None, max_length=64, description="Requested visit date and time")

class VerifyCodeRequest(SendCodeRequest):
    otp: Optional[str] = Field(None, max_length=12, description="One-time code received by email")

# ========== Ledger / visit records ==========
class EntryExitOut(BaseModel):
    entryTime: datetime
    exitTime: Optional[datetime] = None

class VisitOut(BaseModel):
    id: int
    name: str
    email: str
    mobileNumber: str
    purpose: str
    visitDateAndTime: datetime
    isVerified: bool
    status: str
    isVisited: bool
    entries: List[EntryExitOut] = []

# ========== Gate scan ==========
class ScanRequest(BaseModel):
    """Credential scan from the gate scanner."""
    qrString: Optional[str] = Field(None, max_length=256, description="Decoded QR payload")

class ScanVisitor(BaseModel):
    name: str
    email: str

class ScanOut(BaseModel):
    event: ScanEvent
    time: datetime
    user: ScanVisitor

# ========== Admin Auth ==========

class AdminAuthRequest(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None


class AdminInfo(BaseModel):
    id: int
    name: str


class AdminAuthOut(BaseModel):
    admin: AdminInfo
    accessToken: Optional[str] = None


# ========== Reports ==========

class ReportRowOut(BaseModel):
    name: str
    email: str
    mobileNumber: str
    purpose: str
    visitDateAndTime: datetime
    entryTime: Optional[datetime] = None
    exitTime: Optional[datetime] = None
    status: str
    durationMinutes: Optional[int] = None


class ReportSummaryOut(BaseModel):
    total: int
    completed: int
    inside: int
    scheduled: int


# ========== Health for dashboard ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None


# ========== Analytics ==========

class Summary(BaseModel):
    total_visitors: int
    pending: int
    approved: int
    inside: int
