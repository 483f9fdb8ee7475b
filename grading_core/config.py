from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# answers this short or shorter only ever match exactly
STRICT_MATCH_MAX_LEN: int = 2

ESSAY_CREDIT_RATIO: float = 0.6

BAND_MIN: float = 1.0
BAND_MAX: float = 9.0
UNATTEMPTED_BAND: float = 0.0
TOTAL_SCORE_SCALE: float = 10.0

CRITERIA_MIN: float = 0.0
CRITERIA_MAX: float = 9.0

FLAG_AMBIGUOUS: bool = True

NO_ANSWER_TEXT = "No answer provided"
NO_CORRECT_TEXT = "No correct answer set"
NO_BOX_ANSWER_TEXT = "No answer set"
WRITING_CORRECT_TEXT = "Writing requires manual assessment"
WRITING_EXPLANATION = "Writing tasks require manual grading by instructor"

TFNG_VALUES: tuple[str, ...] = ("TRUE", "FALSE", "NOT GIVEN")

DEBUG_TRACE: bool = False
TRACE_FIELDS: tuple[str, ...] = (
    "section",
    "question_id",
    "type",
    "rule",
    "key",
    "is_correct",
    "points",
)

AUDIT_SUMMARY_PATH = pathlib.Path("/tmp/bank_audit.json")

# // env overrides for staging/ops; defaults stay compatible with graded history.
ESSAY_CREDIT_RATIO = _env_float("ESSAY_CREDIT_RATIO", ESSAY_CREDIT_RATIO)
STRICT_MATCH_MAX_LEN = _env_int("STRICT_MATCH_MAX_LEN", STRICT_MATCH_MAX_LEN)
FLAG_AMBIGUOUS = _env_bool("FLAG_AMBIGUOUS", FLAG_AMBIGUOUS)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", DEBUG_TRACE)


def load_config() -> dict:
    cfg = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError): cfg = {}
    e = os.environ
    if e.get("DATA_DIR"): cfg["DATA_DIR"] = e.get("DATA_DIR")
    if e.get("GRADED_BY"): cfg["GRADED_BY"] = e.get("GRADED_BY")
    if e.get("LOG_LEVEL"): cfg["LOG_LEVEL"] = e.get("LOG_LEVEL").upper()
    if e.get("CORS_ORIGINS"):
        cfg["CORS_ORIGINS"] = [o.strip() for o in e["CORS_ORIGINS"].split(",") if o.strip()]
    return cfg
