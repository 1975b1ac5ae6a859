"""
LegalTendr Backend — ORM Models
=================================

Importing this package registers every table on Base.metadata, which is what
Alembic and the test suite's create_all() read.
"""

from legaltendr.models.case import CASE_STATUSES, Case, CaseCategory
from legaltendr.models.catalog import GeoCode, LawyerSpecialty, Specialty
from legaltendr.models.conversation import Conversation, Message
from legaltendr.models.swipe import Swipe
from legaltendr.models.user import USER_TYPES, Client, Lawyer, User, UserSession

__all__ = [
    "CASE_STATUSES",
    "USER_TYPES",
    "Case",
    "CaseCategory",
    "Client",
    "Conversation",
    "GeoCode",
    "Lawyer",
    "LawyerSpecialty",
    "Message",
    "Specialty",
    "Swipe",
    "User",
    "UserSession",
]
