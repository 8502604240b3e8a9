"""
Rule-based quiz question generation from ranked sentences, keywords and topics.
"""
from __future__ import annotations

import random
import re
import uuid
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

import structlog

from studyai.schemas import (
    QUESTION_TYPES,
    FillInBlankQuestion,
    Keyword,
    McqOption,
    MultipleChoiceQuestion,
    Question,
    Topic,
    TrueFalseQuestion,
)
from studyai.services.difficulty import question_difficulty

logger = structlog.get_logger()

BLANK = "_____"

CATEGORY_DISTRACTORS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "science": ("biology", "chemistry", "physics", "mathematics"),
    "biology": ("chemistry", "physics", "science", "anatomy"),
    "chemistry": ("biology", "physics", "science", "biochemistry"),
    "history": ("geography", "politics", "culture", "society"),
    "mathematics": ("algebra", "geometry", "calculus", "statistics"),
})
GENERIC_DISTRACTORS: Tuple[str, ...] = ("concept", "theory", "principle", "method", "process", "system")

# share of each type in a balanced full set
BALANCED_MIX: Tuple[Tuple[str, float], ...] = (
    ("mcq", 0.4),
    ("true-false", 0.3),
    ("fill-in-blank", 0.3),
)


# -------------------- TERMS --------------------

@dataclass(frozen=True)
class KeywordTerm:
    keyword: Keyword

    def term_text(self) -> str:
        return self.keyword.word

    def score(self) -> float:
        return self.keyword.score

    def frequency(self) -> int:
        return self.keyword.frequency


@dataclass(frozen=True)
class TopicTerm:
    topic: Topic

    def term_text(self) -> str:
        return self.topic.name

    def score(self) -> float:
        return self.topic.importance

    def frequency(self) -> int:
        return self.topic.frequency


Term = Union[KeywordTerm, TopicTerm]


def build_terms(keywords: Sequence[Keyword], topics: Sequence[Topic]) -> List[Term]:
    """Keyword terms first, then topics whose name is not already a keyword."""
    terms: List[Term] = [KeywordTerm(k) for k in keywords]
    known = {k.word.lower() for k in keywords}
    for topic in topics:
        if topic.name.lower() not in known:
            terms.append(TopicTerm(topic))
            known.add(topic.name.lower())
    return terms


def order_terms(terms: Sequence[Term], difficulty: str) -> List[Term]:
    """Put terms of the requested difficulty first; ``all`` keeps score order."""
    if difficulty == "all":
        return list(terms)
    preferred = [t for t in terms if question_difficulty(t.score()) == difficulty]
    rest = [t for t in terms if question_difficulty(t.score()) != difficulty]
    return preferred + rest


def topic_for(term: Term, topics: Sequence[Topic]) -> str:
    if isinstance(term, TopicTerm):
        return term.topic.name
    word = term.term_text().lower()
    for topic in topics:
        if word in (k.lower() for k in topic.keywords):
            return topic.name
    return "General"


# -------------------- TEXT HELPERS --------------------

def _display(word: str) -> str:
    return word[:1].upper() + word[1:]


def _term_re(term: str, sentence: str):
    """Whole-word match when the term stands alone in ``sentence``, substring match otherwise."""
    whole = re.compile(r"\b" + re.escape(term) + r"\b", re.I)
    if whole.search(sentence):
        return whole
    return re.compile(re.escape(term), re.I)


def find_sentences(term: str, sentences: Sequence[str]) -> List[str]:
    needle = term.lower()
    return [s for s in sentences if needle in s.lower()]


def blank_out(sentence: str, term: str) -> str:
    return _term_re(term, sentence).sub(BLANK, sentence)


def _match_case(replacement: str, original: str) -> str:
    if original[:1].islower():
        return replacement.lower()
    return _display(replacement)


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


# -------------------- GENERATOR --------------------

class QuestionGenerator:
    """Builds mcq, fill-in-blank and true/false questions.

    All randomness (type choice, sentence choice, distractor choice, option
    and question shuffling, ids) comes from ``rng`` so a seeded
    ``random.Random`` reproduces a quiz exactly.
    """

    def __init__(self, rng: Optional[random.Random] = None,
                 category_distractors: Mapping[str, Tuple[str, ...]] = CATEGORY_DISTRACTORS,
                 generic_distractors: Tuple[str, ...] = GENERIC_DISTRACTORS):
        self.rng = rng or random.Random()
        self.category_distractors = category_distractors
        self.generic_distractors = generic_distractors

    def generate(self, sentences: Sequence[str], keywords: Sequence[Keyword],
                 topics: Sequence[Topic], count: int, difficulty: str = "all",
                 types: Iterable[str] = ("mcq",), randomize: bool = True,
                 balanced: bool = False) -> List[Question]:
        if count < 1:
            raise ValueError("count must be >= 1")
        types = _unique(types)
        if not types:
            raise ValueError("at least one question type is required")
        unknown = [t for t in types if t not in QUESTION_TYPES]
        if unknown:
            raise ValueError(f"Unknown question types: {unknown}")

        terms = order_terms(build_terms(keywords, topics), difficulty)
        if not terms or not sentences:
            return []

        plan = self._type_plan(count, types, balanced)
        questions: List[Question] = []
        seen_prompts: Set[str] = set()
        used_sentences: Set[str] = set()
        for slot, qtype in enumerate(plan):
            term = terms[slot % len(terms)]
            question = self._build(qtype, term, sentences, keywords, topics, used_sentences)
            if question is None or question.prompt in seen_prompts:
                continue
            seen_prompts.add(question.prompt)
            questions.append(question)

        if randomize:
            self.rng.shuffle(questions)
        logger.info("questions_generated", requested=count, generated=len(questions), types=types)
        return questions[:count]

    def _type_plan(self, count: int, types: List[str], balanced: bool) -> List[str]:
        if not balanced:
            return [self.rng.choice(types) for _ in range(count)]
        weights = [(t, w) for t, w in BALANCED_MIX if t in types]
        total = sum(w for _, w in weights)
        plan: List[str] = []
        for qtype, weight in weights:
            plan.extend([qtype] * int(count * weight / total))
        i = 0
        while len(plan) < count:
            plan.append(weights[i % len(weights)][0])
            i += 1
        return plan

    def _build(self, qtype: str, term: Term, sentences: Sequence[str], keywords: Sequence[Keyword],
               topics: Sequence[Topic], used_sentences: Set[str]) -> Optional[Question]:
        text = term.term_text()
        candidates = [s for s in find_sentences(text, sentences) if s not in used_sentences]
        if not candidates:
            return None
        sentence = self.rng.choice(candidates)
        used_sentences.add(sentence)

        common = dict(
            id=uuid.UUID(int=self.rng.getrandbits(128), version=4).hex,
            difficulty=question_difficulty(term.score()),
            topic=topic_for(term, topics),
        )
        if qtype == "mcq":
            return self._mcq(term, sentence, keywords, common)
        if qtype == "fill-in-blank":
            return self._fill_in_blank(term, sentence, common)
        return self._true_false(term, sentence, keywords, common)

    def _mcq(self, term: Term, sentence: str, keywords: Sequence[Keyword], common: dict) -> MultipleChoiceQuestion:
        text = term.term_text()
        options = [McqOption(text=text, is_correct=True)]
        options += [McqOption(text=d) for d in self.distractors(text, keywords, 3)]
        self.rng.shuffle(options)
        return MultipleChoiceQuestion(
            prompt=f'Which term best completes the statement: "{blank_out(sentence, text)}"',
            options=options,
            explanation=(
                f'The correct answer is "{text}"; it appears {term.frequency()} time(s) '
                f"in the source material and fits the context of the statement."
            ),
            **common,
        )

    def _fill_in_blank(self, term: Term, sentence: str, common: dict) -> FillInBlankQuestion:
        text = term.term_text()
        found = _term_re(text, sentence).findall(sentence)
        return FillInBlankQuestion(
            prompt=f"Fill in the blank: {blank_out(sentence, text)}",
            correct_answer=text.lower(),
            accepted_answers=_unique([text.lower(), text] + found),
            explanation=f'The missing word is "{text}" based on the context.',
            **common,
        )

    def _true_false(self, term: Term, sentence: str, keywords: Sequence[Keyword],
                    common: dict) -> TrueFalseQuestion:
        text = term.term_text()
        is_true = self.rng.random() < 0.5
        if is_true:
            statement = sentence
            explanation = "The statement is true: it appears verbatim in the source material."
        else:
            distractor = self.distractors(text, keywords, 1)[0]
            statement = _term_re(text, sentence).sub(lambda m: _match_case(distractor, m.group(0)), sentence, count=1)
            explanation = (
                f'The statement is false: it was altered by replacing "{text}" with "{distractor}".'
            )
        return TrueFalseQuestion(
            prompt=f"True or False: {statement}",
            correct_answer="True" if is_true else "False",
            explanation=explanation,
            **common,
        )

    def distractors(self, term: str, keywords: Sequence[Keyword], k: int) -> List[str]:
        """Wrong options: other keywords first, then the category table, then generic words."""
        term_lc = term.lower()
        chosen: List[str] = []
        taken = {term_lc}

        def take(pool: Iterable[str]) -> None:
            pool = [p for p in _unique(pool) if p.lower() not in taken]
            self.rng.shuffle(pool)
            for p in pool:
                if len(chosen) >= k:
                    break
                chosen.append(_display(p))
                taken.add(p.lower())

        take(kw.word for kw in keywords)
        if len(chosen) < k:
            category = next(
                (key for key in self.category_distractors if key in term_lc or term_lc in key),
                None,
            )
            if category is not None:
                take(self.category_distractors[category])
        if len(chosen) < k:
            take(self.generic_distractors)
        return chosen


def generate(sentences: Sequence[str], keywords: Sequence[Keyword], topics: Sequence[Topic],
             count: int, difficulty: str = "all", types: Iterable[str] = ("mcq",),
             rng: Optional[random.Random] = None, randomize: bool = True,
             balanced: bool = False) -> List[Question]:
    return QuestionGenerator(rng=rng).generate(
        sentences, keywords, topics, count,
        difficulty=difficulty, types=types, randomize=randomize, balanced=balanced,
    )
