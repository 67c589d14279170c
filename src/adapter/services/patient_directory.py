"""Patient Directory Implementations

Provides concrete lookups against the patient service.
"""

import logging
from typing import Optional
import httpx
from src.app.services.patient_directory import PatientDirectory

logger = logging.getLogger(__name__)


class HttpPatientDirectory(PatientDirectory):
    """
    Patient directory backed by the patient service REST API

    GET {base_url}/patients/{patient_id}: 200 means the patient exists,
    404 means it does not. Any other status is raised.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP patient directory

        Args:
            base_url: Base URL of the patient service
            timeout: Request timeout in seconds
            transport: Optional httpx transport override
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def exists(self, patient_id: str) -> bool:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(f"{self.base_url}/patients/{patient_id}")

        if response.status_code == 404:
            logger.info(f"Patient {patient_id} not found in patient service")
            return False

        response.raise_for_status()
        return True


class AllowAllPatientDirectory(PatientDirectory):
    """
    Patient directory that accepts every patient id

    Used when no patient service is configured.
    """

    async def exists(self, patient_id: str) -> bool:
        return True


def create_patient_directory(base_url=None, timeout: float = 5.0) -> PatientDirectory:
    """
    Build the patient directory for the configured patient service

    Args:
        base_url: Patient service URL, or None to skip patient checks

    Returns:
        PatientDirectory implementation
    """
    if base_url:
        return HttpPatientDirectory(base_url, timeout=timeout)

    logger.warning("PATIENT_SERVICE_URL not configured, patient ids are not verified")
    return AllowAllPatientDirectory()
