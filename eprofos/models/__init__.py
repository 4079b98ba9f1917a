from .catalog import Formation, Service, TrainingSession
from .prospect import Prospect, ProspectEvent, prospect_formations, prospect_services
from .touchpoints import ContactRequest, SessionRegistration, NeedsAnalysisRequest

__all__ = [
    "Formation",
    "Service",
    "TrainingSession",
    "Prospect",
    "ProspectEvent",
    "prospect_formations",
    "prospect_services",
    "ContactRequest",
    "SessionRegistration",
    "NeedsAnalysisRequest",
]
