from fastapi import APIRouter, Depends, HTTPException
from ..dependencies import get_store, get_settings
from ..schemas.host import CertInfoOut, HostStatusOut, ProbeOut
from ..services.probe_service import ensure_port, format_duration, probe_host
from ..services.ssl_service import CertificateFetchError, fetch_cert_info
from ..services.state_store import StateStore
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def _require_host(host: str | None) -> str:
    if host is None or not host.strip():
        raise HTTPException(status_code=400, detail="Host parameter is required")
    return host.strip()


@router.get("/up", response_model=ProbeOut)
def check_up(host: str | None = None, store: StateStore = Depends(get_store), settings=Depends(get_settings)):
    """
    Probe a host and record the result.

    The probe always runs to completion (or its own timeout) before the
    store is updated, even if the caller has gone away.
    """
    host = _require_host(host)
    result = probe_host(ensure_port(host), timeout=settings.PROBE_TIMEOUT)

    store.update(host, result.reachable)

    return {
        "reachable": result.reachable,
        "dnsResolutionTime": format_duration(result.dns_time),
        "tcpConnectionTime": format_duration(result.tcp_time),
    }


@router.get("/certinfo", response_model=list[CertInfoOut])
def cert_info(host: str | None = None, settings=Depends(get_settings)):
    host = _require_host(host)
    host_with_port = ensure_port(host)

    result = probe_host(host_with_port, timeout=settings.PROBE_TIMEOUT)
    if not result.reachable:
        raise HTTPException(status_code=503, detail="Host is not reachable")

    try:
        certs = fetch_cert_info(host_with_port, timeout=settings.CERT_TIMEOUT)
    except CertificateFetchError as e:
        logger.error(f"❌ Failed to fetch cert info for {host}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch cert info: {e}")

    return [c.to_dict() for c in certs]


@router.get("/status", response_model=list[HostStatusOut])
def status(store: StateStore = Depends(get_store)):
    now = store.clock()
    return [
        {
            "host": s.host,
            "is_up": s.is_up,
            "status": s.status,
            "last_change": s.last_change,
            "down_since": s.down_since,
            "last_seen": s.last_seen,
            "downtime_seconds": s.downtime(now).total_seconds(),
        }
        for s in store.snapshot()
    ]
