from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Tuple

from pydantic import BaseModel


class Tense(str, Enum):
	PRESENT = "Present"
	PRETERITE = "Preterite (Past)"
	IMPERFECT = "Imperfect (Past)"
	FUTURE = "Future"
	CONDITIONAL = "Conditional"


class GCSETheme(str, Enum):
	# Theme 1: Identity, Lifestyle & Culture
	FAMILY = "Myself, family, and relationships"
	SOCIAL_MEDIA = "Social media and technology"
	FREE_TIME = "Free time and leisure"
	ROUTINE = "Daily routine and celebrations"
	# Theme 2: Local, National & Global Interests
	LOCAL_AREA = "My local area"
	TRAVEL = "Travel and tourism"
	GLOBAL_CHALLENGES = "Global challenges (Environment/Social)"
	FESTIVALS = "Spanish festivals"
	# Theme 3: School & World of Work
	SCHOOL_LIFE = "School life"
	STUDIES = "Studies and pressure"
	FUTURE_PLANS = "Future plans (Uni/Careers)"
	JOBS = "Part-time jobs and work experience"


class Tier(str, Enum):
	FOUNDATION = "Foundation"
	HIGHER = "Higher"


class GrammaticalPerson(str, Enum):
	YO = "Yo (I)"
	TU = "Tú (You)"
	EL_ELLA = "Él/Ella (He/She)"
	NOSOTROS = "Nosotros (We)"
	ELLOS_ELLAS = "Ellos/Ellas (They)"


THEME_AREAS: Dict[str, Tuple[GCSETheme, ...]] = {
	"1. Identity, Lifestyle & Culture": (
		GCSETheme.FAMILY,
		GCSETheme.SOCIAL_MEDIA,
		GCSETheme.FREE_TIME,
		GCSETheme.ROUTINE,
	),
	"2. Local, National & Global Interests": (
		GCSETheme.LOCAL_AREA,
		GCSETheme.TRAVEL,
		GCSETheme.GLOBAL_CHALLENGES,
		GCSETheme.FESTIVALS,
	),
	"3. School & World of Work": (
		GCSETheme.SCHOOL_LIFE,
		GCSETheme.STUDIES,
		GCSETheme.FUTURE_PLANS,
		GCSETheme.JOBS,
	),
}

VerbCategory = Literal["regular", "irregular", "stem-changing", "reflexive"]


class Verb(BaseModel):
	model_config = {"frozen": True}

	spanish: str
	english: str
	category: VerbCategory


def _verb(spanish: str, english: str, category: VerbCategory) -> Verb:
	return Verb(spanish=spanish, english=english, category=category)


# Verb bank from CCEA past-paper frequency analysis, ranked by frequency and spread across papers
VERBS: Tuple[Verb, ...] = (
	# Highest frequency (spread 5 papers)
	_verb("ser", "to be (permanent)", "irregular"),
	_verb("haber", "to have (auxiliary)", "irregular"),
	_verb("tener", "to have", "irregular"),
	_verb("estar", "to be (temporary/location)", "irregular"),
	_verb("gustar", "to like", "irregular"),
	_verb("hacer", "to do/make", "irregular"),
	_verb("poder", "to be able to", "stem-changing"),
	_verb("ir", "to go", "irregular"),
	_verb("encantar", "to love (something)", "regular"),
	_verb("querer", "to want", "stem-changing"),
	_verb("creer", "to believe", "regular"),
	_verb("escribir", "to write", "regular"),
	_verb("comprar", "to buy", "regular"),
	_verb("preferir", "to prefer", "stem-changing"),
	_verb("dar", "to give", "irregular"),
	# High frequency (spread 4 papers)
	_verb("trabajar", "to work", "regular"),
	_verb("usar", "to use", "regular"),
	_verb("vivir", "to live", "regular"),
	_verb("ver", "to see", "irregular"),
	_verb("decir", "to say/tell", "irregular"),
	_verb("poner", "to put", "irregular"),
	_verb("salir", "to go out", "irregular"),
	_verb("ahorrar", "to save (money)", "regular"),
	_verb("pasar", "to spend (time)/happen", "regular"),
	_verb("ganar", "to earn/win", "regular"),
	# Medium frequency (spread 3 papers)
	_verb("llevar", "to wear/carry", "regular"),
	_verb("ayudar", "to help", "regular"),
	_verb("pensar", "to think", "stem-changing"),
	_verb("vender", "to sell", "regular"),
	_verb("aprender", "to learn", "regular"),
	_verb("hablar", "to speak", "regular"),
	_verb("viajar", "to travel", "regular"),
	_verb("venir", "to come", "irregular"),
	_verb("comer", "to eat", "regular"),
	_verb("beber", "to drink", "regular"),
	_verb("dormir", "to sleep", "stem-changing"),
	_verb("estudiar", "to study", "regular"),
	_verb("jugar", "to play", "stem-changing"),
	_verb("leer", "to read", "regular"),
	_verb("conocer", "to know (people/places)", "irregular"),
	_verb("saber", "to know (info)", "irregular"),
	_verb("volver", "to return", "stem-changing"),
	_verb("llegar", "to arrive", "regular"),
)

AUTOPLAY_DELAY_SECONDS = 3.0


def verb_labels() -> List[str]:
	return [f"{verb.spanish.upper()} - {verb.english}" for verb in VERBS]
