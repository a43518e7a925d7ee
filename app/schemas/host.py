from pydantic import BaseModel
from datetime import datetime

class ProbeOut(BaseModel):
    reachable: bool
    dnsResolutionTime: str
    tcpConnectionTime: str

class CertInfoOut(BaseModel):
    issuer: str
    subject: str
    expiration: str  # RFC 3339
    valid: bool

class HostStatusOut(BaseModel):
    host: str
    is_up: bool
    status: str = "up"
    last_change: datetime
    down_since: datetime | None = None  # only set while the host is down
    last_seen: datetime
    downtime_seconds: float = 0
