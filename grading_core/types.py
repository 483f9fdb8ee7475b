from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

QuestionType = Literal[
    "multiple_choice",
    "multiple_selection",
    "matching",
    "short_answer",
    "map_labeling",
    "map_diagram",
    "essay",
    "unsupported",
]
SectionName = Literal["reading", "listening", "writing"]

QUESTION_TYPES: Tuple[str, ...] = (
    "multiple_choice",
    "multiple_selection",
    "matching",
    "short_answer",
    "map_labeling",
    "map_diagram",
    "essay",
    "unsupported",
)
SECTIONS: Tuple[str, ...] = ("reading", "listening", "writing")


# ---- correct-answer encodings ----
@dataclass(frozen=True)
class IndexSpec:
    index: int

@dataclass(frozen=True)
class LiteralSpec:
    text: str

@dataclass(frozen=True)
class OneOfSpec:
    values: Tuple[str, ...]

AnswerSpec = Union[IndexSpec, LiteralSpec, OneOfSpec]


# ---- per-type specs ----
@dataclass(frozen=True)
class MultipleChoiceSpec:
    options: Tuple[str, ...] = ()
    answer: Optional[AnswerSpec] = None

@dataclass(frozen=True)
class MultipleSelectionSpec:
    options: Tuple[str, ...] = ()
    correct: Tuple[str, ...] = ()

@dataclass(frozen=True)
class MatchingSpec:
    left: Tuple[str, ...] = ()
    right: Tuple[str, ...] = ()

@dataclass(frozen=True)
class ShortAnswerSpec:
    answer: Optional[AnswerSpec] = None

@dataclass(frozen=True)
class MapBox:
    label: str = ""
    answer: str = ""

@dataclass(frozen=True)
class MapLabelingSpec:
    boxes: Tuple[MapBox, ...] = ()

@dataclass(frozen=True)
class EssaySpec:
    min_words: int = 0

# row whose question_type is not one we grade
@dataclass(frozen=True)
class UnsupportedSpec:
    raw_type: str = ""

QuestionSpec = Union[
    MultipleChoiceSpec,
    MultipleSelectionSpec,
    MatchingSpec,
    ShortAnswerSpec,
    MapLabelingSpec,
    EssaySpec,
    UnsupportedSpec,
]


@dataclass(frozen=True)
class Question:
    id: str; number: int; text: str; type: QuestionType; section: SectionName
    spec: QuestionSpec
    points: float = 1.0
    explanation: Optional[str] = None

@dataclass(frozen=True)
class Section:
    id: str
    questions: Tuple[Question, ...] = ()

@dataclass(frozen=True)
class QuestionBank:
    test_id: str
    reading: Tuple[Section, ...] = ()
    listening: Tuple[Section, ...] = ()
    writing: Tuple[Section, ...] = ()

    def questions(self, section: SectionName) -> List[Question]:
        out: List[Question] = []
        for sec in getattr(self, section):
            out.extend(sec.questions)
        return out

@dataclass
class Submission:
    id: str; test_id: str
    answers: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class MapAnswer:
    key: str; answer: Any


# ---- results ----
@dataclass(frozen=True)
class QuestionResult:
    question_id: str
    question_text: str
    question_type: str
    user_answer: Any
    correct_answer: Any
    is_correct: bool
    points: float
    section: SectionName
    explanation: Optional[str] = None
    answer_key: Optional[str] = None
    resolved_by: Optional[str] = None
    needs_review: bool = False

@dataclass(frozen=True)
class SectionTally:
    correct: int = 0
    total: int = 0
    percentage: float = 0.0

@dataclass(frozen=True)
class WritingCriteria:
    task_achievement: float = 0.0
    coherence_cohesion: float = 0.0
    lexical_resource: float = 0.0
    grammar_accuracy: float = 0.0

@dataclass(frozen=True)
class WritingBreakdown:
    score: float = 0.0
    criteria: WritingCriteria = field(default_factory=WritingCriteria)

@dataclass(frozen=True)
class GradingResult:
    reading: SectionTally
    listening: SectionTally
    writing: WritingBreakdown
    reading_score: float
    listening_score: float
    writing_score: float
    reading_band: float
    listening_band: float
    writing_band: float
    overall_band: float
    total_score: float
    detailed_results: Tuple[QuestionResult, ...] = ()

    @property
    def flagged_for_review(self) -> List[str]:
        return [r.question_id for r in self.detailed_results if r.needs_review]

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["detailed_results"] = [asdict(r) for r in self.detailed_results]
        out["flagged_for_review"] = self.flagged_for_review
        return out
