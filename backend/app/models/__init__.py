from app.models.assistant import AssistantChat, AssistantMemoryLog, AssistantPreference
from app.models.job import Job
from app.models.listing import ListingReview, MarketplaceListing
from app.models.notification import Notification
from app.models.payment import Payment, PaymentMethod
from app.models.proposal import JobProposal
from app.models.user import User, UserSkill

__all__ = [
    "User",
    "UserSkill",
    "Job",
    "JobProposal",
    "Notification",
    "MarketplaceListing",
    "ListingReview",
    "AssistantPreference",
    "AssistantMemoryLog",
    "AssistantChat",
    "PaymentMethod",
    "Payment",
]
