"""Patient Directory Interface

Defines the contract for checking patients in the external patient service.
"""

from abc import ABC, abstractmethod


class PatientDirectory(ABC):
    """
    Lookup of patients owned by another service

    Billing only needs to know whether a patient exists before issuing
    an invoice against it.
    """

    @abstractmethod
    async def exists(self, patient_id: str) -> bool:
        """
        Check whether a patient exists

        Args:
            patient_id: Patient identifier

        Returns:
            True if the patient exists, False otherwise
        """
        pass
