from agency_admin.models.admin_user import AdminUser
from agency_admin.models.audit import AuditLog
from agency_admin.models.calculator_lead import CalculatorLead, CalculatorType, LeadQuality
from agency_admin.models.error_log import ErrorLevel, ErrorLog, compute_fingerprint
from agency_admin.models.lead_attribution import LeadAttribution

__all__ = [
    "AdminUser",
    "AuditLog",
    "CalculatorLead",
    "CalculatorType",
    "LeadQuality",
    "LeadAttribution",
    "ErrorLevel",
    "ErrorLog",
    "compute_fingerprint",
]
