"""SQLAlchemy models."""
from salon_crm.backend.models.app_setting import AppSetting
from salon_crm.backend.models.customer import Customer, Service, Visit
from salon_crm.backend.models.feedback import FeedbackRequest
from salon_crm.backend.models.winback import WinbackCampaign, WinbackMessage
from salon_crm.backend.models.issue import Issue

__all__ = [
    "AppSetting",
    "Customer",
    "Service",
    "Visit",
    "FeedbackRequest",
    "WinbackCampaign",
    "WinbackMessage",
    "Issue",
]
