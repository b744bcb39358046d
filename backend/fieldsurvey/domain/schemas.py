"""Pydantic records for loosely-typed external data.

These records only coerce shapes (camelCase keys, ``_id`` aliases, date-like
strings, absent optional fields). Business invariants are enforced by the
entities built from them.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError


class ApiRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class EntityRecord(ApiRecord):
    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OptionRecord(ApiRecord):
    libelle: str | None = None
    valeur: Any = None
    goto: str | None = None
    ordre: int | None = None


class QuestionRecord(EntityRecord):
    """Standalone question.

    Example:
        >>> QuestionRecord.model_validate({"_id": "q1", "code": "Q1", "sectionId": "s1"})
    """

    code: str | None = None
    texte: str | None = None
    type: str | None = None
    obligatoire: bool | None = None
    unite: str | None = None
    automatique: bool | None = None
    options: list[OptionRecord] | None = None
    section_id: str | None = None
    volet_id: str | None = None
    reference_table: str | None = None
    reference_field: str | None = None


class SectionRecord(ApiRecord):
    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    titre: str | None = None
    description: str | None = None
    ordre: int | None = None
    obligatoire: bool | None = None
    conditions_affichage: Any = None


class QuestionnaireQuestionRecord(ApiRecord):
    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    texte: str | None = None
    type: str | None = None
    section_id: str | None = None
    ordre: int | None = None
    obligatoire: bool | None = None
    options: list[OptionRecord | str] | None = None
    validation: Any = None
    placeholder: str | None = None
    aide: str | None = None
    conditions_affichage: Any = None
    logic_saut: Any = None
    score_points: float | None = None
    categorie_analyse: str | None = None
    table_reference: Any = None


class FeedbackRecord(ApiRecord):
    rating: float
    commentaire: str | None = None
    date: datetime | None = None


class QuestionnaireRecord(EntityRecord):
    titre: str | None = None
    description: str | None = None
    version: str | None = None
    statut: str | None = None
    type_questionnaire: str | None = None
    domaine_application: list[str] | None = None
    questions: list[QuestionnaireQuestionRecord] | None = None
    sections: list[SectionRecord] | None = None
    parametres: dict[str, Any] | None = None
    duree_estimee: int | None = None
    niveau_difficulte: str | None = None
    languages_prises: list[str] | None = None
    metadonnees: dict[str, Any] | None = None
    tags_recherche: list[str] | None = None
    instructions_speciales: str | None = None
    score_minimum: float | None = None
    score_maximum: float | None = None
    critere_validation: Any = None
    modele_reponse: Any = None
    valide_par: str | None = None
    date_validation: datetime | None = None
    utilise_compte: int | None = None
    dernier_utilise: datetime | None = None
    feedback_moyen: float | None = None
    feedbacks: list[FeedbackRecord] | None = None
    created_by: Any = None


class InterviewQuestionRecord(ApiRecord):
    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    question: str | None = None
    answer: str | None = None
    rating: float | None = None
    notes: str | None = None


class AttachmentRecord(ApiRecord):
    filename: str | None = None
    path: str | None = None
    mime_type: str | None = None
    size: int | None = None
    upload_date: datetime | None = None


class InterviewRecord(EntityRecord):
    candidate_name: str | None = None
    candidate_email: str | None = None
    candidate_phone: str | None = None
    position: str | None = None
    department: str | None = None
    scheduled_date: datetime | None = None
    duration: int | None = None
    status: str | None = None
    type: str | None = None
    location: str | None = None
    meeting_link: str | None = None
    interviewer: Any = None
    interviewer_id: str | None = None
    questions: list[InterviewQuestionRecord] | None = None
    overall_rating: float | None = None
    recommendation: str | None = None
    notes: str | None = None
    cv: AttachmentRecord | None = None
    created_by: Any = None


class HistoryRecord(ApiRecord):
    """Certification, cooperative membership or training entry.

    Keys other than the name and the dates are kept as details.
    """

    model_config = ConfigDict(extra="allow")

    nom: str | None = None
    date_obtention: date | None = None
    date_adhesion: date | None = None
    date_suivie: date | None = None

    @field_validator("date_obtention", "date_adhesion", "date_suivie", mode="before")
    @classmethod
    def _date_part(cls, value: Any) -> Any:
        return _strip_time(value)


class GpsRecord(ApiRecord):
    latitude: float
    longitude: float


class ProducteurRecord(EntityRecord):
    nom: str | None = None
    prenoms: str | None = None
    date_naissance: date | None = None
    lieu_naissance: str | None = None
    sexe: str | None = None
    nationalite: str | None = None
    niveau_scolaire: str | None = None
    numero_telephone: str | None = None
    village: str | None = None
    souspref: str | None = None
    departement: str | None = None
    region: str | None = None
    pays: str | None = None
    type_producteur: str | None = None
    superficie_totale: float | None = None
    nombre_parcelles: int | None = None
    principales_cultures: list[str] | None = None
    annees_experience: int | None = None
    type_exploitation: str | None = None
    materiel_agricole: list[str] | None = None
    certifications: list[HistoryRecord] | None = None
    cooperatives: list[HistoryRecord] | None = None
    formations_recues: list[HistoryRecord] | None = None
    acces_banque: bool | None = None
    revenus: Any = None
    photo_profil: AttachmentRecord | None = None
    piece_identite: AttachmentRecord | None = None
    status_verification: str | None = None
    notes: str | None = None
    gps_coordinates: GpsRecord | None = None
    created_by: Any = None

    @field_validator("date_naissance", mode="before")
    @classmethod
    def _date_part(cls, value: Any) -> Any:
        return _strip_time(value)


def _strip_time(value: Any) -> Any:
    # "1980-05-01T00:00:00.000Z" as produced by JSON date serializers
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    if isinstance(value, datetime):
        return value.date()
    return value


R = TypeVar("R", bound=ApiRecord)


def parse_record(schema: type[R], data: Any) -> R:
    """Validate ``data`` against ``schema``, raising the domain error on failure."""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, Mapping):
        raise ValidationError("Les données de l'entité sont requises", value=data)
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(
            f"Champ invalide '{location}': {first['msg']}", field=location
        ) from exc
