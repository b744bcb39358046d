"""Producteur entity: a farmer profile with document verification."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from ._checks import check_non_negative, coerce_enum, coerce_optional_enum, enum_value, is_number, require_text
from .attachments import Attachment
from .clock import Clock, IdFactory, new_id, to_iso, utc_now
from .errors import ValidationError
from .identity import EntityMixin, Identity
from .schemas import ProducteurRecord, parse_record


class ProducteurType(str, Enum):
    PETIT = "petit"
    MOYEN = "moyen"
    GRAND = "grand"
    COOPERATIF = "cooperatif"


class ExploitationType(str, Enum):
    FAMILIALE = "familiale"
    COMMERCIALE = "commerciale"
    MIXTE = "mixte"
    BIOLOGIQUE = "biologique"


class VerificationStatus(str, Enum):
    EN_ATTENTE = "en_attente"
    VERIFIE = "verifie"
    REJETE = "rejete"
    INCOMPLET = "incomplet"


@dataclass(frozen=True)
class GpsCoordinates:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not is_number(self.latitude) or not -90 <= self.latitude <= 90:
            raise ValidationError("Latitude invalide", field="latitude", value=self.latitude)
        if not is_number(self.longitude) or not -180 <= self.longitude <= 180:
            raise ValidationError("Longitude invalide", field="longitude", value=self.longitude)

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class HistoryEntry:
    """Append-only record: a certification, a cooperative or a training.

    ``date_key`` is the external name of the entry's date
    (``dateObtention``, ``dateAdhesion`` or ``dateSuivie``).
    """

    nom: str
    date_key: str
    date: date | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {**self.details, "nom": self.nom, self.date_key: to_iso(self.date)}


_HISTORY_DATE_FIELDS = {
    "dateObtention": "date_obtention",
    "dateAdhesion": "date_adhesion",
    "dateSuivie": "date_suivie",
}


def _to_date(value: Any, field_name: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.split("T", 1)[0])
        except ValueError:
            pass
    raise ValidationError("Date invalide", field=field_name, value=value)


def _build_history(data: Any, date_key: str, message: str, field_name: str) -> HistoryEntry:
    if isinstance(data, HistoryEntry):
        return data
    raw = dict(data) if isinstance(data, Mapping) else {}
    nom = raw.pop("nom", None)
    if not isinstance(nom, str) or not nom.strip():
        raise ValidationError(message, field=field_name, value=data)
    snake_key = _HISTORY_DATE_FIELDS[date_key]
    raw_date = raw.pop(date_key, None)
    snake_date = raw.pop(snake_key, None)
    for other_camel, other_snake in _HISTORY_DATE_FIELDS.items():
        # the other entry kinds' date keys never belong to this one
        if raw.get(other_camel) is None:
            raw.pop(other_camel, None)
        if raw.get(other_snake) is None:
            raw.pop(other_snake, None)
    return HistoryEntry(
        nom=nom,
        date_key=date_key,
        date=_to_date(raw_date if raw_date is not None else snake_date, date_key),
        details=raw,
    )


def _unique(values: Iterable[str] | None, message: str, field_name: str) -> tuple[str, ...]:
    cleaned = []
    for value in values or ():
        text = require_text(value, message, field_name)
        if text not in cleaned:
            cleaned.append(text)
    return tuple(cleaned)


@dataclass(eq=False, kw_only=True, frozen=True)
class Producteur(EntityMixin):
    """A farmer.

    ``verify()`` requires both ``photo_profil`` and ``piece_identite``;
    ``reject`` and ``mark_as_incomplete`` are allowed from any state.
    """

    identity: Identity = field(default_factory=Identity.new)
    nom: str
    prenoms: str
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
    type_producteur: ProducteurType | None = None
    superficie_totale: float = 0
    nombre_parcelles: int = 0
    principales_cultures: tuple[str, ...] = ()
    annees_experience: int = 0
    type_exploitation: ExploitationType | None = None
    materiel_agricole: tuple[str, ...] = ()
    certifications: tuple[HistoryEntry, ...] = ()
    cooperatives: tuple[HistoryEntry, ...] = ()
    formations_recues: tuple[HistoryEntry, ...] = ()
    acces_banque: bool = False
    revenus: Any = None
    photo_profil: Attachment | None = None
    piece_identite: Attachment | None = None
    status_verification: VerificationStatus = VerificationStatus.EN_ATTENTE
    notes: str = ""
    gps_coordinates: GpsCoordinates | None = None
    created_by: Any = None

    def __post_init__(self) -> None:
        gps = self.gps_coordinates
        if isinstance(gps, Mapping):
            gps = GpsCoordinates(latitude=gps.get("latitude"), longitude=gps.get("longitude"))
        self._update(
            date_naissance=_to_date(self.date_naissance, "dateNaissance"),
            type_producteur=coerce_optional_enum(
                ProducteurType, self.type_producteur, "Type de producteur invalide", "typeProducteur"
            ),
            type_exploitation=coerce_optional_enum(
                ExploitationType, self.type_exploitation, "Type d'exploitation invalide", "typeExploitation"
            ),
            status_verification=coerce_enum(
                VerificationStatus, self.status_verification, "Status de vérification invalide", "statusVerification"
            ),
            principales_cultures=_unique(
                self.principales_cultures, "Le nom de la culture est requis", "principalesCultures"
            ),
            materiel_agricole=_unique(self.materiel_agricole, "Le nom du matériel est requis", "materielAgricole"),
            certifications=tuple(
                _build_history(c, "dateObtention", "Les informations de certification sont requises", "certifications")
                for c in self.certifications or ()
            ),
            cooperatives=tuple(
                _build_history(c, "dateAdhesion", "Les informations de la coopérative sont requises", "cooperatives")
                for c in self.cooperatives or ()
            ),
            formations_recues=tuple(
                _build_history(f, "dateSuivie", "Les informations de formation sont requises", "formationsRecues")
                for f in self.formations_recues or ()
            ),
            gps_coordinates=gps,
        )
        self.validate()

    # ------------------------------------------------------------------ #
    #  Computed properties
    # ------------------------------------------------------------------ #

    @property
    def nom_complet(self) -> str:
        return f"{self.prenoms} {self.nom}"

    @property
    def age(self) -> int | None:
        if self.date_naissance is None:
            return None
        today = self.now().date()
        birth = self.date_naissance
        return today.year - birth.year - ((today.month, today.day) < (birth.month, birth.day))

    @property
    def adresse_complete(self) -> str:
        parts = (self.village, self.souspref, self.departement, self.region, self.pays)
        return ", ".join(part.strip() for part in parts if part and part.strip())

    @property
    def is_verified(self) -> bool:
        return self.status_verification is VerificationStatus.VERIFIE

    @property
    def is_pending(self) -> bool:
        return self.status_verification is VerificationStatus.EN_ATTENTE

    @property
    def is_rejected(self) -> bool:
        return self.status_verification is VerificationStatus.REJETE

    @property
    def is_incomplete(self) -> bool:
        return self.status_verification is VerificationStatus.INCOMPLET

    @property
    def has_documents(self) -> bool:
        return self.photo_profil is not None and self.piece_identite is not None

    @property
    def experience_level(self) -> str:
        if self.annees_experience < 2:
            return "Débutant"
        if self.annees_experience < 5:
            return "Intermédiaire"
        if self.annees_experience < 10:
            return "Expérimenté"
        return "Expert"

    @property
    def production_scale(self) -> str:
        if self.superficie_totale < 1:
            return "Micro"
        if self.superficie_totale < 5:
            return "Petite"
        if self.superficie_totale < 20:
            return "Moyenne"
        return "Grande"

    # ------------------------------------------------------------------ #
    #  Profile updates
    # ------------------------------------------------------------------ #

    def update_personal_info(
        self,
        nom: str,
        prenoms: str,
        date_naissance: date | str | None = None,
        sexe: str | None = None,
        nationalite: str | None = None,
    ) -> None:
        """Replace names and civil details; the birth date may not be in the future."""
        new_nom = require_text(nom, "Le nom est requis", "nom")
        new_prenoms = require_text(prenoms, "Les prénoms sont requis", "prenoms")
        new_birth = _to_date(date_naissance, "dateNaissance")
        self._check_birth_date(new_birth)
        self._update(
            nom=new_nom,
            prenoms=new_prenoms,
            date_naissance=new_birth,
            sexe=sexe,
            nationalite=nationalite,
        )
        self.touch()

    def update_contact_info(
        self,
        numero_telephone: str | None = None,
        village: str | None = None,
        souspref: str | None = None,
        departement: str | None = None,
        region: str | None = None,
        pays: str | None = None,
    ) -> None:
        """Replace phone number and address fields."""
        self._update(
            numero_telephone=numero_telephone,
            village=village,
            souspref=souspref,
            departement=departement,
            region=region,
            pays=pays,
        )
        self.touch()

    def update_agriculture_info(
        self,
        *,
        type_producteur: str | None = None,
        superficie_totale: float | None = None,
        nombre_parcelles: int | None = None,
        principales_cultures: Iterable[str] | None = None,
        annees_experience: int | None = None,
        type_exploitation: str | None = None,
    ) -> None:
        """Update the farm profile; arguments left as None are unchanged."""
        check_non_negative(
            superficie_totale, "La superficie totale ne peut pas être négative", "superficieTotale"
        )
        check_non_negative(nombre_parcelles, "Le nombre de parcelles ne peut pas être négatif", "nombreParcelles")
        check_non_negative(
            annees_experience, "Les années d'expérience ne peuvent pas être négatives", "anneesExperience"
        )
        new_type = coerce_optional_enum(
            ProducteurType, type_producteur, "Type de producteur invalide", "typeProducteur"
        )
        new_exploitation = coerce_optional_enum(
            ExploitationType, type_exploitation, "Type d'exploitation invalide", "typeExploitation"
        )
        new_cultures = None
        if principales_cultures is not None:
            new_cultures = _unique(principales_cultures, "Le nom de la culture est requis", "principalesCultures")

        changes = {
            "type_producteur": new_type,
            "superficie_totale": superficie_totale,
            "nombre_parcelles": nombre_parcelles,
            "principales_cultures": new_cultures,
            "annees_experience": annees_experience,
            "type_exploitation": new_exploitation,
        }
        self._update(**{name: value for name, value in changes.items() if value is not None})
        self.touch()

    def add_culture(self, culture: str) -> None:
        """Add a crop; adding a known crop is a no-op."""
        name = require_text(culture, "Le nom de la culture est requis", "culture")
        if name in self.principales_cultures:
            return
        self._update(principales_cultures=self.principales_cultures + (name,))
        self.touch()

    def remove_culture(self, culture: str) -> None:
        """Drop a crop if present."""
        if culture not in self.principales_cultures:
            return
        self._update(principales_cultures=tuple(c for c in self.principales_cultures if c != culture))
        self.touch()

    def add_materiel(self, materiel: str) -> None:
        """Add farm equipment; duplicates are ignored."""
        name = require_text(materiel, "Le nom du matériel est requis", "materiel")
        if name in self.materiel_agricole:
            return
        self._update(materiel_agricole=self.materiel_agricole + (name,))
        self.touch()

    def add_certification(self, certification: Mapping[str, Any]) -> None:
        """Append a certification record (``dateObtention``)."""
        entry = _build_history(
            certification, "dateObtention", "Les informations de certification sont requises", "certification"
        )
        self._update(certifications=self.certifications + (entry,))
        self.touch()

    def add_cooperative(self, cooperative: Mapping[str, Any]) -> None:
        """Append a cooperative membership (``dateAdhesion``)."""
        entry = _build_history(
            cooperative, "dateAdhesion", "Les informations de la coopérative sont requises", "cooperative"
        )
        self._update(cooperatives=self.cooperatives + (entry,))
        self.touch()

    def add_formation(self, formation: Mapping[str, Any]) -> None:
        """Append a training record (``dateSuivie``)."""
        entry = _build_history(formation, "dateSuivie", "Les informations de formation sont requises", "formation")
        self._update(formations_recues=self.formations_recues + (entry,))
        self.touch()

    # ------------------------------------------------------------------ #
    #  Documents and verification
    # ------------------------------------------------------------------ #

    def attach_photo(self, photo_data: Mapping[str, Any]) -> None:
        """Attach a profile photo stamped with the current date."""
        self._update(
            photo_profil=Attachment.uploaded(
                photo_data, self.now(), "Les données de la photo sont requises", "photoProfil"
            )
        )
        self.touch()

    def attach_piece_identite(self, piece_data: Mapping[str, Any]) -> None:
        """Attach the identity document stamped with the current date."""
        self._update(
            piece_identite=Attachment.uploaded(
                piece_data, self.now(), "Les données de la pièce d'identité sont requises", "pieceIdentite"
            )
        )
        self.touch()

    def verify(self) -> None:
        """Mark as verified; needs both the photo and the identity document."""
        if not self.has_documents:
            raise ValidationError(
                "Les documents sont requis pour la vérification",
                field="statusVerification",
                value=self.status_verification.value,
            )
        self._update(status_verification=VerificationStatus.VERIFIE)
        self.touch()

    def reject(self, reason: str = "") -> None:
        """Mark as rejected, keeping ``reason`` in ``notes``."""
        self._update(status_verification=VerificationStatus.REJETE, notes=reason or "")
        self.touch()

    def mark_as_incomplete(self, reason: str = "") -> None:
        """Mark the file as incomplete, keeping ``reason`` in ``notes``."""
        self._update(status_verification=VerificationStatus.INCOMPLET, notes=reason or "")
        self.touch()

    def set_gps_coordinates(self, latitude: float, longitude: float) -> None:
        """Replace the farm position; both coordinates are range-checked."""
        self._update(gps_coordinates=GpsCoordinates(latitude=latitude, longitude=longitude))
        self.touch()

    # ------------------------------------------------------------------ #
    #  Validation and boundary contracts
    # ------------------------------------------------------------------ #

    def _check_birth_date(self, birth: date | None) -> None:
        if birth is not None and birth > self.now().date():
            raise ValidationError(
                "La date de naissance ne peut pas être dans le futur", field="dateNaissance", value=birth.isoformat()
            )

    def validate(self) -> None:
        """Raise ValidationError on the first broken invariant."""
        self.identity.validate()
        require_text(self.nom, "Le nom est requis", "nom")
        require_text(self.prenoms, "Les prénoms sont requis", "prenoms")
        self._check_birth_date(self.date_naissance)
        for value, message, field_name in (
            (self.superficie_totale, "La superficie totale ne peut pas être négative", "superficieTotale"),
            (self.nombre_parcelles, "Le nombre de parcelles ne peut pas être négatif", "nombreParcelles"),
            (self.annees_experience, "Les années d'expérience ne peuvent pas être négatives", "anneesExperience"),
        ):
            if value is None:
                raise ValidationError(message, field=field_name, value=value)
            check_non_negative(value, message, field_name)

    def to_plain_object(self) -> dict[str, Any]:
        """camelCase dict for storage and transport, with derived keys."""
        return {
            **self.identity.to_dict(),
            "nom": self.nom,
            "prenoms": self.prenoms,
            "nomComplet": self.nom_complet,
            "dateNaissance": to_iso(self.date_naissance),
            "lieuNaissance": self.lieu_naissance,
            "sexe": self.sexe,
            "nationalite": self.nationalite,
            "niveauScolaire": self.niveau_scolaire,
            "numeroTelephone": self.numero_telephone,
            "village": self.village,
            "souspref": self.souspref,
            "departement": self.departement,
            "region": self.region,
            "pays": self.pays,
            "typeProducteur": enum_value(self.type_producteur),
            "superficieTotale": self.superficie_totale,
            "nombreParcelles": self.nombre_parcelles,
            "principalesCultures": list(self.principales_cultures),
            "anneesExperience": self.annees_experience,
            "typeExploitation": enum_value(self.type_exploitation),
            "materielAgricole": list(self.materiel_agricole),
            "certifications": [c.to_dict() for c in self.certifications],
            "cooperatives": [c.to_dict() for c in self.cooperatives],
            "formationsRecues": [f.to_dict() for f in self.formations_recues],
            "accesBanque": self.acces_banque,
            "revenus": self.revenus,
            "photoProfil": self.photo_profil.to_dict() if self.photo_profil else None,
            "pieceIdentite": self.piece_identite.to_dict() if self.piece_identite else None,
            "statusVerification": self.status_verification.value,
            "notes": self.notes,
            "gpsCoordinates": self.gps_coordinates.to_dict() if self.gps_coordinates else None,
            "createdBy": self.created_by,
            "age": self.age,
            "adresseComplete": self.adresse_complete,
            "isVerified": self.is_verified,
            "isPending": self.is_pending,
            "isRejected": self.is_rejected,
            "isIncomplete": self.is_incomplete,
            "hasDocuments": self.has_documents,
            "experienceLevel": self.experience_level,
            "productionScale": self.production_scale,
        }

    @classmethod
    def from_api_data(
        cls,
        data: Mapping[str, Any],
        *,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> "Producteur":
        """Rebuild a producteur from a stored or transported record."""
        record = parse_record(ProducteurRecord, data)
        now = clock()

        def history(items, date_key):
            return [
                {**(item.model_extra or {}), "nom": item.nom, date_key: getattr(item, _HISTORY_DATE_FIELDS[date_key])}
                for item in items or ()
            ]

        def attachment(item, message, field_name):
            return Attachment.build(item.model_dump(), now, message, field_name) if item else None

        return cls(
            identity=Identity.new(
                record.id,
                created_at=record.created_at,
                updated_at=record.updated_at,
                clock=clock,
                id_factory=id_factory,
            ),
            nom=record.nom,
            prenoms=record.prenoms,
            date_naissance=record.date_naissance,
            lieu_naissance=record.lieu_naissance,
            sexe=record.sexe,
            nationalite=record.nationalite,
            niveau_scolaire=record.niveau_scolaire,
            numero_telephone=record.numero_telephone,
            village=record.village,
            souspref=record.souspref,
            departement=record.departement,
            region=record.region,
            pays=record.pays,
            type_producteur=record.type_producteur,
            superficie_totale=record.superficie_totale if record.superficie_totale is not None else 0,
            nombre_parcelles=record.nombre_parcelles if record.nombre_parcelles is not None else 0,
            principales_cultures=record.principales_cultures,
            annees_experience=record.annees_experience if record.annees_experience is not None else 0,
            type_exploitation=record.type_exploitation,
            materiel_agricole=record.materiel_agricole,
            certifications=history(record.certifications, "dateObtention"),
            cooperatives=history(record.cooperatives, "dateAdhesion"),
            formations_recues=history(record.formations_recues, "dateSuivie"),
            acces_banque=bool(record.acces_banque),
            revenus=record.revenus,
            photo_profil=attachment(record.photo_profil, "Les données de la photo sont requises", "photoProfil"),
            piece_identite=attachment(
                record.piece_identite, "Les données de la pièce d'identité sont requises", "pieceIdentite"
            ),
            status_verification=record.status_verification or VerificationStatus.EN_ATTENTE,
            notes=record.notes or "",
            gps_coordinates=record.gps_coordinates.model_dump() if record.gps_coordinates else None,
            created_by=record.created_by,
        )
