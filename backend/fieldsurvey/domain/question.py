"""Question entity: a single survey question with optional skip logic."""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable

from ._checks import coerce_enum, is_blank, is_number, require_text
from .clock import Clock, IdFactory, new_id, utc_now
from .errors import ValidationError
from .identity import EntityMixin, Identity
from .schemas import QuestionRecord, parse_record


class QuestionType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    BOOLEAN = "boolean"


CHOICE_TYPES = frozenset({QuestionType.SINGLE_CHOICE, QuestionType.MULTI_CHOICE})

REFERENCE_TABLES = (
    "District",
    "Region",
    "Departement",
    "Souspref",
    "Village",
    "Pays",
    "Nationalite",
    "NiveauScolaire",
    "Piece",
    "Producteur",
    "Parcelle",
)

_OPTION_KEYS = frozenset({"libelle", "valeur", "goto", "ordre"})


@dataclass(frozen=True)
class QuestionOption:
    """A selectable answer; ``goto`` names the question code to jump to."""

    libelle: str
    valeur: Any = None
    goto: str | None = None
    ordre: int | None = None

    @classmethod
    def build(cls, data: "QuestionOption | Mapping[str, Any] | str", position: int) -> "QuestionOption":
        """Normalize an option, defaulting ``valeur`` and ``ordre``."""
        if isinstance(data, QuestionOption):
            raw = dataclasses.asdict(data)
        elif isinstance(data, str):
            raw = {"libelle": data}
        elif isinstance(data, Mapping):
            raw = dict(data)
        else:
            raw = {}
        libelle = raw.get("libelle")
        if not isinstance(libelle, str) or not libelle.strip():
            raise ValidationError("Une option doit avoir un libellé", field="libelle", value=libelle)
        valeur = raw.get("valeur")
        goto = raw.get("goto")
        goto = goto.strip() if isinstance(goto, str) and goto.strip() else None
        return cls(
            libelle=libelle,
            valeur=libelle if valeur is None or valeur == "" else valeur,
            goto=goto,
            ordre=raw.get("ordre") or position,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"libelle": self.libelle, "valeur": self.valeur, "goto": self.goto, "ordre": self.ordre}


def build_options(options: Iterable[Any] | None) -> tuple[QuestionOption, ...]:
    return tuple(QuestionOption.build(opt, index) for index, opt in enumerate(options or (), start=1))


def _check_duplicate_libelles(options: Iterable[QuestionOption]) -> None:
    seen: set[str] = set()
    for option in options:
        if option.libelle in seen:
            raise ValidationError("Cette option existe déjà", field="options", value=option.libelle)
        seen.add(option.libelle)


# --------------------------------------------------------------------------- #
#  Response checks, one per question type
# --------------------------------------------------------------------------- #


def _check_text(question: "Question", response: Any) -> None:
    return None


def _check_number(question: "Question", response: Any) -> None:
    if is_number(response):
        if isinstance(response, float) and math.isnan(response):
            raise ValidationError("Une valeur numérique est requise", field=question.code, value=response)
        return
    if isinstance(response, str):
        try:
            if not math.isnan(float(response.strip())):
                return
        except ValueError:
            pass
    raise ValidationError("Une valeur numérique est requise", field=question.code, value=response)


def _check_date(question: "Question", response: Any) -> None:
    if isinstance(response, (date, datetime)):
        return
    if isinstance(response, str):
        try:
            datetime.fromisoformat(response.strip())
            return
        except ValueError:
            pass
    raise ValidationError("Une date valide est requise", field=question.code, value=response)


def _check_boolean(question: "Question", response: Any) -> None:
    if isinstance(response, bool) or response in ("true", "false"):
        return
    raise ValidationError("Une valeur booléenne est requise", field=question.code, value=response)


def _check_single_choice(question: "Question", response: Any) -> None:
    if question.find_option_by_valeur(response) is None:
        raise ValidationError("La valeur sélectionnée n'est pas valide", field=question.code, value=response)


def _check_multi_choice(question: "Question", response: Any) -> None:
    if not isinstance(response, (list, tuple, set, frozenset)):
        raise ValidationError(
            "Un tableau de valeurs est requis pour les choix multiples", field=question.code, value=response
        )
    invalid = [value for value in response if question.find_option_by_valeur(value) is None]
    if invalid:
        raise ValidationError(
            f"Certaines valeurs sélectionnées ne sont pas valides: {invalid}",
            field=question.code,
            value=invalid,
        )


RESPONSE_CHECKS: dict[QuestionType, Callable[["Question", Any], None]] = {
    QuestionType.TEXT: _check_text,
    QuestionType.NUMBER: _check_number,
    QuestionType.DATE: _check_date,
    QuestionType.BOOLEAN: _check_boolean,
    QuestionType.SINGLE_CHOICE: _check_single_choice,
    QuestionType.MULTI_CHOICE: _check_multi_choice,
}


@dataclass(eq=False, kw_only=True, frozen=True)
class Question(EntityMixin):
    """A survey question.

    Choice questions carry at least one option; option libellés are unique.
    A question may be bound to one of :data:`REFERENCE_TABLES`, in which case
    ``reference_field`` names the looked-up column.

    Example:
        >>> q = Question(
        ...     code="Q1",
        ...     texte="Cultivez-vous du cacao ?",
        ...     type="single_choice",
        ...     options=[{"libelle": "Oui", "valeur": "yes", "goto": "Q5"}],
        ... )
        >>> q.get_next_question_code("yes")
        'Q5'
    """

    identity: Identity = field(default_factory=Identity.new)
    code: str
    texte: str
    type: QuestionType
    obligatoire: bool = False
    unite: str | None = None
    automatique: bool = False
    options: tuple[QuestionOption, ...] = ()
    section_id: str | None = None
    volet_id: str | None = None
    reference_table: str | None = None
    reference_field: str | None = None

    def __post_init__(self) -> None:
        self._update(
            type=coerce_enum(QuestionType, self.type, "Type de question invalide", "type"),
            options=build_options(self.options),
        )
        self.validate()

    # ------------------------------------------------------------------ #
    #  Computed properties
    # ------------------------------------------------------------------ #

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    @property
    def has_goto_logic(self) -> bool:
        return any(option.goto for option in self.options)

    @property
    def is_reference_question(self) -> bool:
        return self.reference_table is not None and self.reference_field is not None

    @property
    def is_choice_question(self) -> bool:
        return self.type in CHOICE_TYPES

    @property
    def requires_options(self) -> bool:
        return self.is_choice_question

    def find_option_by_valeur(self, valeur: Any) -> QuestionOption | None:
        """Option whose ``valeur`` equals ``valeur``; booleans only match booleans."""
        is_bool = isinstance(valeur, bool)
        return next(
            (
                option
                for option in self.options
                if isinstance(option.valeur, bool) == is_bool and option.valeur == valeur
            ),
            None,
        )

    def _option_index(self, libelle: str) -> int:
        for index, option in enumerate(self.options):
            if option.libelle == libelle:
                return index
        return -1

    # ------------------------------------------------------------------ #
    #  Mutations
    # ------------------------------------------------------------------ #

    def update_texte(self, nouveau_texte: str) -> None:
        """Replace the question text."""
        self._update(texte=require_text(nouveau_texte, "Le texte de la question est requis", "texte"))
        self.touch()

    def make_obligatoire(self) -> None:
        self._update(obligatoire=True)
        self.touch()

    def make_optionnelle(self) -> None:
        self._update(obligatoire=False)
        self.touch()

    def set_unite(self, unite: str | None) -> None:
        """Set or clear the unit shown next to number answers."""
        self._update(unite=unite)
        self.touch()

    def add_option(self, option: QuestionOption | Mapping[str, Any]) -> None:
        """Append an option; ``ordre`` defaults to its 1-based position."""
        new_option = QuestionOption.build(option, len(self.options) + 1)
        if self._option_index(new_option.libelle) != -1:
            raise ValidationError("Cette option existe déjà", field="libelle", value=new_option.libelle)
        self._update(options=self.options + (new_option,))
        self.touch()

    def remove_option(self, libelle: str) -> None:
        """Remove an option by libellé; unknown libellés are ignored."""
        index = self._option_index(libelle)
        if index == -1:
            return
        if self.requires_options and len(self.options) == 1:
            raise ValidationError(
                "Les questions à choix doivent avoir au moins une option", field="options", value=libelle
            )
        self._update(options=self.options[:index] + self.options[index + 1 :])
        self.touch()

    def update_option(self, libelle: str, changes: Mapping[str, Any]) -> None:
        """Merge ``changes`` into the option labelled ``libelle``."""
        index = self._option_index(libelle)
        if index == -1:
            raise ValidationError("Option non trouvée", field="libelle", value=libelle)
        unknown = set(changes) - _OPTION_KEYS
        if unknown:
            raise ValidationError("Champs d'option inconnus", field="options", value=sorted(unknown))
        current = self.options[index]
        merged = {**dataclasses.asdict(current), **changes}
        updated = QuestionOption.build(merged, current.ordre or index + 1)
        others = self.options[:index] + self.options[index + 1 :]
        if any(option.libelle == updated.libelle for option in others):
            raise ValidationError("Cette option existe déjà", field="libelle", value=updated.libelle)
        self._update(options=self.options[:index] + (updated,) + self.options[index + 1 :])
        self.touch()

    def set_reference_table(self, table: str, reference_field: str) -> None:
        """Bind answers to a whitelisted reference table."""
        if table not in REFERENCE_TABLES:
            raise ValidationError("Table de référence non autorisée", field="referenceTable", value=table)
        if not reference_field:
            raise ValidationError("Le champ de référence est requis", field="referenceField")
        self._update(reference_table=table, reference_field=reference_field)
        self.touch()

    def clear_reference_table(self) -> None:
        self._update(reference_table=None, reference_field=None)
        self.touch()

    # ------------------------------------------------------------------ #
    #  Responses and branching
    # ------------------------------------------------------------------ #

    def validate_response(self, response: Any) -> bool:
        """Check ``response`` against this question's type and options.

        Returns True or raises :class:`ValidationError`. An empty response is
        accepted for optional questions only.
        """
        if is_blank(response):
            if self.obligatoire:
                raise ValidationError("Cette question est obligatoire", field=self.code)
            return True
        RESPONSE_CHECKS[self.type](self, response)
        return True

    def get_next_question_code(self, response: Any) -> str | None:
        """Goto target of the option selected by ``response``, if any."""
        if not self.has_goto_logic or is_blank(response):
            return None
        option = self.find_option_by_valeur(response)
        return option.goto if option else None

    # ------------------------------------------------------------------ #
    #  Validation and boundary contracts
    # ------------------------------------------------------------------ #

    def validate(self) -> None:
        """Raise ValidationError on the first broken invariant."""
        self.identity.validate()
        if not isinstance(self.code, str) or not self.code.strip():
            raise ValidationError("Le code de la question est requis", field="code", value=self.code)
        if not isinstance(self.texte, str) or not self.texte.strip():
            raise ValidationError("Le texte de la question est requis", field="texte", value=self.texte)
        if self.requires_options and not self.options:
            raise ValidationError("Les questions à choix doivent avoir au moins une option", field="options")
        _check_duplicate_libelles(self.options)
        if self.reference_table and self.reference_table not in REFERENCE_TABLES:
            raise ValidationError(
                "Table de référence non autorisée", field="referenceTable", value=self.reference_table
            )
        if self.reference_table and not self.reference_field:
            raise ValidationError("Le champ de référence est requis", field="referenceField")

    def to_plain_object(self) -> dict[str, Any]:
        """camelCase dict for storage and transport, with derived keys."""
        return {
            **self.identity.to_dict(),
            "code": self.code,
            "texte": self.texte,
            "type": self.type.value,
            "obligatoire": self.obligatoire,
            "unite": self.unite,
            "automatique": self.automatique,
            "options": [option.to_dict() for option in self.options],
            "sectionId": self.section_id,
            "voletId": self.volet_id,
            "referenceTable": self.reference_table,
            "referenceField": self.reference_field,
            "hasOptions": self.has_options,
            "hasGotoLogic": self.has_goto_logic,
            "isReferenceQuestion": self.is_reference_question,
            "isChoiceQuestion": self.is_choice_question,
            "requiresOptions": self.requires_options,
        }

    @classmethod
    def from_api_data(
        cls,
        data: Mapping[str, Any],
        *,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> "Question":
        """Rebuild a question from a stored or transported record."""
        record = parse_record(QuestionRecord, data)
        return cls(
            identity=Identity.new(
                record.id,
                created_at=record.created_at,
                updated_at=record.updated_at,
                clock=clock,
                id_factory=id_factory,
            ),
            code=record.code,
            texte=record.texte,
            type=record.type,
            obligatoire=bool(record.obligatoire),
            unite=record.unite,
            automatique=bool(record.automatique),
            options=[option.model_dump() for option in record.options or ()],
            section_id=record.section_id,
            volet_id=record.volet_id,
            reference_table=record.reference_table,
            reference_field=record.reference_field,
        )
