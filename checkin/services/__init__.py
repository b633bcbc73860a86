from checkin.services.audit_service import AuditService, audit_service
from checkin.services.esupervision_service import EsupervisionService, esupervision_service
from checkin.services.device_detection import detect_device


def get_esupervision_service() -> EsupervisionService:
    """FastAPI dependency, overridden in tests"""
    return esupervision_service


def get_audit_service() -> AuditService:
    """FastAPI dependency, overridden in tests"""
    return audit_service


__all__ = [
    "AuditService",
    "audit_service",
    "EsupervisionService",
    "esupervision_service",
    "detect_device",
    "get_esupervision_service",
    "get_audit_service",
]
