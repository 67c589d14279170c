from .unit_of_work import SqlAlchemyUnitOfWork
from .patient_directory import (
    HttpPatientDirectory,
    AllowAllPatientDirectory,
    create_patient_directory,
)
from .pdf_service import ReportLabPdfService

__all__ = [
    "SqlAlchemyUnitOfWork",
    "HttpPatientDirectory",
    "AllowAllPatientDirectory",
    "create_patient_directory",
    "ReportLabPdfService",
]
