from .attachments import Attachment
from .errors import DomainError, ValidationError
from .flow import QuestionFlow
from .identity import EntityMixin, Identity
from .interview import Interview, InterviewQuestion, InterviewStatus, InterviewType, Recommendation
from .producteur import (
    ExploitationType,
    GpsCoordinates,
    HistoryEntry,
    Producteur,
    ProducteurType,
    VerificationStatus,
)
from .question import REFERENCE_TABLES, Question, QuestionOption, QuestionType
from .questionnaire import (
    DomaineApplication,
    Feedback,
    NiveauDifficulte,
    Questionnaire,
    QuestionnaireQuestion,
    QuestionnaireSection,
    QuestionnaireStatus,
    QuestionnaireType,
)
from .value_objects import Email, QuestionCode

__all__ = [
    "Attachment",
    "DomainError",
    "DomaineApplication",
    "Email",
    "EntityMixin",
    "ExploitationType",
    "Feedback",
    "GpsCoordinates",
    "HistoryEntry",
    "Identity",
    "Interview",
    "InterviewQuestion",
    "InterviewStatus",
    "InterviewType",
    "NiveauDifficulte",
    "Producteur",
    "ProducteurType",
    "Question",
    "QuestionCode",
    "QuestionFlow",
    "QuestionOption",
    "QuestionType",
    "Questionnaire",
    "QuestionnaireQuestion",
    "QuestionnaireSection",
    "QuestionnaireStatus",
    "QuestionnaireType",
    "REFERENCE_TABLES",
    "Recommendation",
    "ValidationError",
    "VerificationStatus",
]
