from .unit_of_work import UnitOfWork
from .patient_directory import PatientDirectory
from .pdf_service import PdfService
from .invoice_number_sequencer import InvoiceNumberSequencer, format_invoice_number

__all__ = [
    "UnitOfWork",
    "PatientDirectory",
    "PdfService",
    "InvoiceNumberSequencer",
    "format_invoice_number",
]
