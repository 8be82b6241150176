"""Shared test fixtures and factories."""

from typing import Any

import pytest

from kintree.models import Person


def _make_person(person_id: str, **kwargs: Any) -> Person:
    defaults: dict[str, Any] = {
        "id": person_id,
        "given_name": person_id,
    }
    defaults.update(kwargs)
    return Person(**defaults)


def _marry(a: Person, b: Person) -> None:
    a.spouse_ids.append(b.id)
    b.spouse_ids.append(a.id)


# =============================================================================
# Family Fixtures
# =============================================================================


@pytest.fixture
def nuclear_family() -> list[Person]:
    """dad + mom with two children, Anna and Ben. Only parent_ids are set on the children."""
    dad = _make_person("dad", given_name="Dad", gender="male")
    mom = _make_person("mom", given_name="Mom", gender="female")
    _marry(dad, mom)
    anna = _make_person("anna", given_name="Anna", gender="female", parent_ids=["dad", "mom"])
    ben = _make_person("ben", given_name="Ben", gender="male", parent_ids=["dad", "mom"])
    return [dad, mom, anna, ben]


@pytest.fixture
def extended_family() -> dict[str, Person]:
    """
    Four generations around "me" (female):

        gf = gm            mgf            hf
           |                |              |
      +----+-----+      +---+-----+     +--+------+
     dad = mom  aunt = aunt_husband   uncle_m   husband  sil = cob
      (dad's mom is mgf's daughter)
        |                 |
     me, bro          cousin
     me = husband -> son -> gson -> ggson
     bro = bro_wife -> niece
    """
    p = {
        "gf": _make_person("gf", gender="male"),
        "gm": _make_person("gm", gender="female"),
        "mgf": _make_person("mgf", gender="male"),
        "hf": _make_person("hf", gender="male"),
        "dad": _make_person("dad", gender="male", parent_ids=["gf", "gm"]),
        "aunt": _make_person("aunt", gender="female", parent_ids=["gf", "gm"]),
        "aunt_husband": _make_person("aunt_husband", gender="male"),
        "mom": _make_person("mom", gender="female", parent_ids=["mgf"]),
        "uncle_m": _make_person("uncle_m", gender="male", parent_ids=["mgf"]),
        "husband": _make_person("husband", gender="male", parent_ids=["hf"]),
        "sil": _make_person("sil", gender="female", parent_ids=["hf"]),
        "cob": _make_person("cob", gender="male"),
        "me": _make_person("me", gender="female", parent_ids=["dad", "mom"]),
        "bro": _make_person("bro", gender="male", parent_ids=["dad", "mom"]),
        "bro_wife": _make_person("bro_wife", gender="female"),
        "cousin": _make_person("cousin", gender="male", parent_ids=["aunt", "aunt_husband"]),
        "son": _make_person("son", gender="male", parent_ids=["me", "husband"]),
        "niece": _make_person("niece", gender="female", parent_ids=["bro", "bro_wife"]),
        "gson": _make_person("gson", gender="male", parent_ids=["son"]),
        "ggson": _make_person("ggson", gender="male", parent_ids=["gson"]),
    }
    _marry(p["gf"], p["gm"])
    _marry(p["dad"], p["mom"])
    _marry(p["aunt"], p["aunt_husband"])
    _marry(p["me"], p["husband"])
    _marry(p["sil"], p["cob"])
    _marry(p["bro"], p["bro_wife"])
    return p


@pytest.fixture
def symmetric_family() -> list[Person]:
    """The nuclear family with every link recorded on both sides."""
    dad = _make_person("dad", given_name="Dad", gender="male", child_ids=["anna"])
    mom = _make_person("mom", given_name="Mom", gender="female", child_ids=["anna"])
    _marry(dad, mom)
    anna = _make_person("anna", given_name="Anna", gender="female", parent_ids=["dad", "mom"])
    return [dad, mom, anna]


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


@pytest.fixture
def tree_file(tmp_path, nuclear_family):
    from kintree.serialization import write_family_tree

    path = tmp_path / "tree.json"
    write_family_tree(path, nuclear_family)
    return path


SAMPLE_GEDCOM = """\
0 HEAD
1 CHAR UTF-8
1 GEDC
2 VERS 5.5.1
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 OCCU Farmer
1 BIRT
2 DATE 1 JAN 1900
2 PLAC Springfield
0 @I2@ INDI
1 NAME Jane /Doe/
1 SEX F
0 @I3@ INDI
1 NAME Jim /Smith/
1 SEX M
1 DEAT
2 DATE 1990
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
1 MARR
2 DATE 1925
2 PLAC Shelbyville
0 TRLR
"""


@pytest.fixture
def gedcom_file(tmp_path):
    """John and Jane Smith with their son Jim."""
    path = tmp_path / "family.ged"
    path.write_text(SAMPLE_GEDCOM, encoding="utf-8")
    return path
