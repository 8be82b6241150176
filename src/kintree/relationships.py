"""Relationship path search and kinship labelling."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import networkx as nx

from kintree.graph import FamilyGraph
from kintree.models import Person

logger = logging.getLogger(__name__)

# One entry per rule outcome; add a locale by adding a key to every entry.
KINSHIP_TERMS: dict[str, dict[str, str]] = {
    "same_person": {"en": "Same Person", "ta": "ஒரே நபர்"},
    "no_relationship": {"en": "No direct relationship found", "ta": "நேரடி உறவு இல்லை"},
    "husband": {"en": "Husband", "ta": "கணவர்"},
    "wife": {"en": "Wife", "ta": "மனைவி"},
    "spouse": {"en": "Spouse", "ta": "கணவன் / மனைவி"},
    "father": {"en": "Father", "ta": "அப்பா"},
    "mother": {"en": "Mother", "ta": "அம்மா"},
    "parent": {"en": "Parent", "ta": "பெற்றோர்"},
    "son": {"en": "Son", "ta": "மகன்"},
    "daughter": {"en": "Daughter", "ta": "மகள்"},
    "child": {"en": "Child", "ta": "குழந்தை"},
    "brother": {"en": "Brother", "ta": "சகோதரன்"},
    "sister": {"en": "Sister", "ta": "சகோதரி"},
    "sibling": {"en": "Sibling", "ta": "உடன்பிறந்தவர்"},
    "grandfather": {"en": "Grandfather", "ta": "தாத்தா"},
    "grandmother": {"en": "Grandmother", "ta": "பாட்டி"},
    "grandparent": {"en": "Grandparent", "ta": "பாட்டி/தாத்தா"},
    "grandson": {"en": "Grandson", "ta": "பேரன்"},
    "granddaughter": {"en": "Granddaughter", "ta": "பேத்தி"},
    "grandchild": {"en": "Grandchild", "ta": "பேரக்குழந்தை"},
    "great_grandfather": {"en": "Great Grandfather", "ta": "கொள்ளுத் தாத்தா"},
    "great_grandmother": {"en": "Great Grandmother", "ta": "கொள்ளுப் பாட்டி"},
    "great_grandparent": {"en": "Great Grandparent", "ta": "கொள்ளுத் தாத்தா/பாட்டி"},
    "great_grandson": {"en": "Great Grandson", "ta": "கொள்ளுப்பேரன்"},
    "great_granddaughter": {"en": "Great Granddaughter", "ta": "கொள்ளுப்பேத்தி"},
    "great_grandchild": {"en": "Great Grandchild", "ta": "கொள்ளுப்பேரக்குழந்தை"},
    "maternal_uncle": {"en": "Maternal Uncle", "ta": "மாமா (தாய் மாமா)"},
    "paternal_uncle": {"en": "Paternal Uncle", "ta": "சித்தப்பா / பெரியப்பா"},
    "maternal_aunt": {"en": "Maternal Aunt", "ta": "சித்தி / பெரியம்மா"},
    "paternal_aunt": {"en": "Paternal Aunt", "ta": "அத்தை"},
    "uncle_aunt": {"en": "Uncle/Aunt", "ta": "மாமா/அத்தை"},
    "maternal_uncle_by_marriage": {"en": "Uncle (by marriage)", "ta": "மாமா"},
    "paternal_uncle_by_marriage": {"en": "Uncle (by marriage)", "ta": "சித்தப்பா / பெரியப்பா"},
    "paternal_aunt_by_marriage": {"en": "Aunt (by marriage)", "ta": "மாமி"},
    "maternal_aunt_by_marriage": {"en": "Aunt (by marriage)", "ta": "சித்தி / பெரியம்மா"},
    "nephew": {"en": "Nephew", "ta": "மருமகன் (சகோதரன்/சகோதரியின் மகன்)"},
    "niece": {"en": "Niece", "ta": "மருமகள் (சகோதரன்/சகோதரியின் மகள்)"},
    "nephew_niece": {"en": "Nephew/Niece", "ta": "மருமகன்/மருமகள்"},
    "cousin_brother": {"en": "Cousin Brother", "ta": "மாமா/அத்தை மகன் (உறவு சகோதரன்)"},
    "cousin_sister": {"en": "Cousin Sister", "ta": "மாமா/அத்தை மகள் (உறவு சகோதரி)"},
    "cousin": {"en": "Cousin", "ta": "உறவினர்"},
    "father_in_law": {"en": "Father-in-law", "ta": "மாமனார்"},
    "mother_in_law": {"en": "Mother-in-law", "ta": "மாமியார்"},
    "parent_in_law": {"en": "Parent-in-law", "ta": "மாமனார்/மாமியார்"},
    "son_in_law": {"en": "Son-in-law", "ta": "மருமகன்"},
    "daughter_in_law": {"en": "Daughter-in-law", "ta": "மருமகள்"},
    "child_in_law": {"en": "Child-in-law", "ta": "மருமகன்/மருமகள்"},
    "spouse_brother": {"en": "Brother-in-law", "ta": "மைத்துனர் / மச்சான்"},
    "spouse_sister": {"en": "Sister-in-law", "ta": "நாத்தனார் / மைத்துனி"},
    "spouse_sibling": {"en": "Sibling-in-law", "ta": "மைத்துனர்/நாத்தனார்"},
    # Sibling's spouse; Tamil depends on the speaker's gender
    "sibling_husband_male_speaker": {"en": "Brother-in-law", "ta": "மச்சான் / அத்தான்"},
    "sibling_wife_male_speaker": {"en": "Sister-in-law", "ta": "அண்ணி / மைத்துனி"},
    "sibling_husband": {"en": "Brother-in-law", "ta": "அத்தான் / மச்சான்"},
    "sibling_wife": {"en": "Sister-in-law", "ta": "அண்ணி"},
    "co_brother": {"en": "Co-Brother", "ta": "சகலை"},
    "co_sister": {"en": "Co-Sister", "ta": "ஓரகத்தி"},
    "co_sibling": {"en": "Co-Sibling-in-law", "ta": "சகலை / ஓரகத்தி"},
    "ancestor": {"en": "Ancestor ({generations} generations)", "ta": "மூதாதையர் ({generations} தலைமுறை)"},
    "descendant": {"en": "Descendant ({generations} generations)", "ta": "வழித்தோன்றல் ({generations} தலைமுறை)"},
    "relative_by_marriage": {"en": "Relative by marriage", "ta": "திருமண உறவினர்"},
    "relative": {"en": "Relative", "ta": "உறவினர்"},
}


@dataclass
class RelationshipResult:
    """What person B is to person A, plus the id path used to decide it."""

    english: str
    tamil: str
    path: list[str]
    key: str = ""
    params: dict[str, int] = field(default_factory=dict)

    def label(self, locale: str) -> str:
        """The label in another locale; falls back to English for unknown keys or locales."""
        term = KINSHIP_TERMS.get(self.key, {}).get(locale)
        if term is None:
            return self.english
        return term.format(**self.params)


def _result(key: str, path: list[str], **params: int) -> RelationshipResult:
    terms = KINSHIP_TERMS[key]
    return RelationshipResult(
        english=terms["en"].format(**params),
        tamil=terms["ta"].format(**params),
        path=path,
        key=key,
        params=params,
    )


def _by_gender(gender: str, male: str, female: str, neutral: str) -> str:
    if gender == "male":
        return male
    if gender == "female":
        return female
    return neutral


def _search(family: FamilyGraph, from_id: str, to_id: str) -> list[str] | None:
    # Work-list DFS, parents before children before spouses. A neighbour is
    # only pushed if to_id can still be reached from it without re-entering
    # the current path, so the first path in DFS order is found without
    # walking the dead-end branches around it.
    if from_id == to_id:
        return [from_id]
    if from_id not in family or to_id not in family:
        return None

    U = family.G.to_undirected(as_view=True)
    if to_id not in nx.node_connected_component(U, from_id):
        return None

    def can_reach(node: str, on_path: frozenset[str]) -> bool:
        return node == to_id or nx.has_path(nx.restricted_view(U, on_path, []), node, to_id)

    stack: list[tuple[str, ...]] = [(from_id,)]
    while stack:
        path = stack.pop()
        current = path[-1]
        if current == to_id:
            return list(path)

        on_path = frozenset(path)
        neighbours = [*family.parents(current), *family.children(current), *family.spouses(current)]
        for neighbour in reversed(neighbours):
            if neighbour in on_path or neighbour not in family:
                continue
            if can_reach(neighbour, on_path):
                stack.append((*path, neighbour))

    return None


def find_path(people: Iterable[Person], from_id: str, to_id: str) -> list[str] | None:
    """
    Find the first parent/child/spouse path from from_id to to_id.

    This is the first path in depth-first order, not necessarily the shortest.
    Returns None when the two people are not connected.
    """
    return _search(FamilyGraph(people), from_id, to_id)


def generation_diff(family: FamilyGraph, path: list[str]) -> int:
    """Signed generations travelled along path: -1 per step up to a parent, +1 per step down."""
    diff = 0
    for current, following in zip(path, path[1:]):
        if current not in family or following not in family:
            continue
        if following in family.parents(current):
            diff -= 1
        elif following in family.children(current):
            diff += 1
    return diff


def goes_through_spouse(family: FamilyGraph, path: list[str]) -> bool:
    for current, following in zip(path, path[1:]):
        if current not in family or following not in family:
            continue
        if following in family.spouses(current):
            return True
    return False


def _direct(family: FamilyGraph, a: str, b: str, gender_a: str, gender_b: str, path: list[str]) -> RelationshipResult | None:
    if b in family.spouses(a):
        return _result(_by_gender(gender_b, "husband", "wife", "spouse"), path)

    if b in family.parents(a):
        return _result(_by_gender(gender_b, "father", "mother", "parent"), path)

    if b in family.children(a):
        return _result(_by_gender(gender_b, "son", "daughter", "child"), path)

    if set(family.parents(a)) & set(family.parents(b)):
        return _result(_by_gender(gender_b, "brother", "sister", "sibling"), path)

    return None


def _lineal(family: FamilyGraph, a: str, b: str, gender_b: str, path: list[str]) -> RelationshipResult | None:
    for parent_id in family.parents(a):
        if b in family.parents(parent_id):
            return _result(_by_gender(gender_b, "grandfather", "grandmother", "grandparent"), path)

    for child_id in family.children(a):
        if b in family.children(child_id):
            return _result(_by_gender(gender_b, "grandson", "granddaughter", "grandchild"), path)

    for parent_id in family.parents(a):
        for grandparent_id in family.parents(parent_id):
            if b in family.parents(grandparent_id):
                return _result(
                    _by_gender(gender_b, "great_grandfather", "great_grandmother", "great_grandparent"), path
                )

    for child_id in family.children(a):
        for grandchild_id in family.children(child_id):
            if b in family.children(grandchild_id):
                return _result(
                    _by_gender(gender_b, "great_grandson", "great_granddaughter", "great_grandchild"), path
                )

    return None


def _collateral(family: FamilyGraph, a: str, b: str, gender_b: str, path: list[str]) -> RelationshipResult | None:
    # Uncle/aunt: a parent's sibling, or that sibling's spouse
    for parent_id in family.parents(a):
        if parent_id not in family:
            continue
        maternal = family.gender(parent_id) == "female"
        parent_siblings = family.siblings(parent_id)

        if b in parent_siblings:
            if gender_b == "male":
                return _result("maternal_uncle" if maternal else "paternal_uncle", path)
            if gender_b == "female":
                return _result("maternal_aunt" if maternal else "paternal_aunt", path)
            return _result("uncle_aunt", path)

        for sibling_id in parent_siblings:
            if b in family.spouses(sibling_id):
                if gender_b == "male":
                    return _result("maternal_uncle_by_marriage" if maternal else "paternal_uncle_by_marriage", path)
                if family.gender(parent_id) == "male":
                    return _result("paternal_aunt_by_marriage", path)
                return _result("maternal_aunt_by_marriage", path)

    for sibling_id in family.siblings(a):
        if b in family.children(sibling_id):
            return _result(_by_gender(gender_b, "nephew", "niece", "nephew_niece"), path)

    for parent_id in family.parents(a):
        for uncle_id in family.siblings(parent_id):
            if b in family.children(uncle_id):
                return _result(_by_gender(gender_b, "cousin_brother", "cousin_sister", "cousin"), path)

    return None


def _in_laws(family: FamilyGraph, a: str, b: str, gender_a: str, gender_b: str, path: list[str]) -> RelationshipResult | None:
    for spouse_id in family.spouses(a):
        if b in family.parents(spouse_id):
            return _result(_by_gender(gender_b, "father_in_law", "mother_in_law", "parent_in_law"), path)

    for child_id in family.children(a):
        if b in family.spouses(child_id):
            return _result(_by_gender(gender_b, "son_in_law", "daughter_in_law", "child_in_law"), path)

    for spouse_id in family.spouses(a):
        if b in family.siblings(spouse_id):
            return _result(_by_gender(gender_b, "spouse_brother", "spouse_sister", "spouse_sibling"), path)

    for sibling_id in family.siblings(a):
        if b in family.spouses(sibling_id):
            if gender_a == "male":
                key = "sibling_husband_male_speaker" if gender_b == "male" else "sibling_wife_male_speaker"
            else:
                key = "sibling_husband" if gender_b == "male" else "sibling_wife"
            return _result(key, path)

    for spouse_id in family.spouses(a):
        for spouse_sibling_id in family.siblings(spouse_id):
            if b in family.spouses(spouse_sibling_id):
                return _result(_by_gender(gender_b, "co_brother", "co_sister", "co_sibling"), path)

    return None


def find_relationship(people: Iterable[Person], person_a: Person, person_b: Person) -> RelationshipResult:
    """
    Describe what person_b is to person_a.

    The named rules are tried in a fixed order and the first match wins. When
    none applies the label falls back to the generation difference along the
    found path. The result always carries that path for highlighting.
    """
    if person_a.id == person_b.id:
        return _result("same_person", [person_a.id])

    family = FamilyGraph(people)
    path = _search(family, person_a.id, person_b.id)
    if not path:
        return _result("no_relationship", [])

    a, b = person_a.id, person_b.id
    gender_a, gender_b = person_a.gender, person_b.gender

    result = (
        _direct(family, a, b, gender_a, gender_b, path)
        or _lineal(family, a, b, gender_b, path)
        or _collateral(family, a, b, gender_b, path)
        or _in_laws(family, a, b, gender_a, gender_b, path)
    )
    if result is not None:
        return result

    diff = generation_diff(family, path)
    logger.debug("No named rule for %s -> %s, generation difference %d", a, b, diff)
    if diff < -2:
        return _result("ancestor", path, generations=abs(diff))
    if diff > 2:
        return _result("descendant", path, generations=diff)
    if goes_through_spouse(family, path):
        return _result("relative_by_marriage", path)
    return _result("relative", path)
