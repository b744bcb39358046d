"""Tests for the Producteur entity."""

from datetime import date
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from fieldsurvey.domain.errors import ValidationError  # noqa: E402
from fieldsurvey.domain.producteur import Producteur, VerificationStatus  # noqa: E402

PHOTO = {"filename": "photo.jpg", "path": "/uploads/photo.jpg", "mime_type": "image/jpeg", "size": 2048}
PIECE = {"filename": "cni.pdf", "path": "/uploads/cni.pdf"}


@pytest.fixture
def producteur(identity):
    return Producteur(
        identity=identity("prod-1"),
        nom="Koffi",
        prenoms="Jean Kouassi",
        date_naissance=date(1980, 5, 1),
        village="Bonon",
        region="Marahoué",
        pays="Côte d'Ivoire",
        superficie_totale=3.5,
        nombre_parcelles=2,
        annees_experience=12,
        principales_cultures=["cacao", "café", "cacao"],
    )


@pytest.mark.parametrize(
    "field, value",
    [
        ("nom", ""),
        ("prenoms", None),
        ("superficie_totale", -1),
        ("annees_experience", -2),
        ("date_naissance", date(2030, 1, 1)),
        ("status_verification", "approuve"),
        ("type_producteur", "geant"),
        ("gps_coordinates", {"latitude": 95, "longitude": 0}),
    ],
)
def test_invalid_construction_fails(identity, field, value):
    data = dict(identity=identity(), nom="Koffi", prenoms="Jean")
    data[field] = value
    with pytest.raises(ValidationError):
        Producteur(**data)


def test_derived_properties(producteur):
    # clock is fixed at 2024-03-01
    assert producteur.age == 43
    assert producteur.nom_complet == "Jean Kouassi Koffi"
    assert producteur.adresse_complete == "Bonon, Marahoué, Côte d'Ivoire"
    assert producteur.experience_level == "Expert"
    assert producteur.production_scale == "Petite"
    assert producteur.principales_cultures == ("cacao", "café")
    assert producteur.is_pending


def test_age_is_none_without_birth_date(identity):
    assert Producteur(identity=identity(), nom="Koffi", prenoms="Jean").age is None


def test_verify_requires_both_documents(producteur, clock):
    producteur.attach_photo(PHOTO)
    with pytest.raises(ValidationError):
        producteur.verify()
    assert producteur.status_verification is VerificationStatus.EN_ATTENTE

    producteur.attach_piece_identite(PIECE)
    producteur.verify()
    assert producteur.status_verification is VerificationStatus.VERIFIE
    assert producteur.to_plain_object()["statusVerification"] == "verifie"
    assert producteur.piece_identite.upload_date == clock()


def test_reject_and_incomplete_keep_reason(producteur):
    producteur.reject("Pièce illisible")
    assert producteur.is_rejected
    assert producteur.notes == "Pièce illisible"
    producteur.mark_as_incomplete("Photo manquante")
    assert producteur.is_incomplete
    assert producteur.notes == "Photo manquante"


def test_update_agriculture_info_is_all_or_nothing(producteur):
    with pytest.raises(ValidationError):
        producteur.update_agriculture_info(superficie_totale=25, nombre_parcelles=-1)
    assert producteur.superficie_totale == 3.5

    producteur.update_agriculture_info(superficie_totale=25, type_producteur="grand")
    assert producteur.production_scale == "Grande"
    assert producteur.nombre_parcelles == 2


def test_cultures_and_materiel_have_set_semantics(producteur, clock):
    before = producteur.updated_at
    clock.advance(minutes=1)
    producteur.add_culture("cacao")
    assert producteur.updated_at == before

    producteur.add_culture("hévéa")
    producteur.remove_culture("café")
    assert producteur.principales_cultures == ("cacao", "hévéa")

    producteur.add_materiel("machette")
    producteur.add_materiel("machette")
    assert producteur.materiel_agricole == ("machette",)
    with pytest.raises(ValidationError):
        producteur.add_culture(" ")


def test_history_records_normalize_dates(producteur):
    producteur.add_certification({"nom": "Rainforest Alliance", "dateObtention": "2021-06-15T00:00:00.000Z"})
    producteur.add_cooperative({"nom": "COOP-CA Bonon", "dateAdhesion": date(2015, 1, 10), "role": "membre"})
    producteur.add_formation({"nom": "Taille du cacaoyer"})

    assert producteur.certifications[0].date == date(2021, 6, 15)
    assert producteur.cooperatives[0].to_dict() == {
        "role": "membre",
        "nom": "COOP-CA Bonon",
        "dateAdhesion": "2015-01-10",
    }
    assert producteur.formations_recues[0].date is None
    with pytest.raises(ValidationError):
        producteur.add_certification({"dateObtention": "2021-06-15"})


def test_gps_coordinates_are_range_checked(producteur):
    with pytest.raises(ValidationError):
        producteur.set_gps_coordinates(7.0, 200)
    assert producteur.gps_coordinates is None
    producteur.set_gps_coordinates(7.02, -5.99)
    assert producteur.gps_coordinates.to_dict() == {"latitude": 7.02, "longitude": -5.99}


def test_plain_object_round_trip(producteur, clock):
    producteur.add_certification({"nom": "UTZ", "dateObtention": "2019-03-01"})
    producteur.add_cooperative({"nom": "COOP-CA Bonon", "dateAdhesion": "2015-01-10", "role": "membre"})
    producteur.attach_photo(PHOTO)
    producteur.attach_piece_identite(PIECE)
    producteur.set_gps_coordinates(7.02, -5.99)
    producteur.verify()

    plain = producteur.to_plain_object()
    assert plain["age"] == 43
    assert plain["hasDocuments"] is True

    restored = Producteur.from_api_data(plain, clock=clock)
    assert restored == producteur
    assert restored.date_naissance == producteur.date_naissance
    assert restored.principales_cultures == producteur.principales_cultures
    assert restored.certifications == producteur.certifications
    assert restored.cooperatives == producteur.cooperatives
    assert restored.photo_profil == producteur.photo_profil
    assert restored.gps_coordinates == producteur.gps_coordinates
    assert restored.is_verified
    assert restored.updated_at == producteur.updated_at


def test_from_api_data_strips_time_from_birth_date():
    producteur = Producteur.from_api_data(
        {"_id": "p-7", "nom": "Traoré", "prenoms": "Mariam", "dateNaissance": "1990-02-14T00:00:00.000Z"}
    )
    assert producteur.id == "p-7"
    assert producteur.date_naissance == date(1990, 2, 14)
    assert producteur.status_verification is VerificationStatus.EN_ATTENTE


def test_fields_cannot_be_assigned_directly(producteur):
    with pytest.raises(AttributeError):
        producteur.status_verification = VerificationStatus.VERIFIE
    with pytest.raises(AttributeError):
        producteur.superficie_totale = -5
    assert producteur.is_pending
    assert producteur.superficie_totale == 3.5


@pytest.mark.parametrize("attach", ["attach_photo", "attach_piece_identite"])
def test_attachments_must_be_mappings(producteur, attach):
    with pytest.raises(ValidationError):
        getattr(producteur, attach)("photo.jpg")
    assert not producteur.has_documents
