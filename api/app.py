from __future__ import annotations
from fastapi import FastAPI, HTTPException, Body, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import logging, uuid, typing as t

from grading_core.config import load_config
from grading_core.engine import GradingEngine
from grading_core.errors import GradingError
from grading_core.export import rows_from_record, to_csv, to_rows
from grading_core.types import WritingCriteria
from grading_core.writing import apply_manual_writing
from . import storage

CFG = load_config()
logging.basicConfig(level=CFG.get("LOG_LEVEL", "INFO"))
log = logging.getLogger(__name__)

DEFAULT_GRADED_BY = CFG.get("GRADED_BY", "auto-grader")

app = FastAPI(title="IELTS Auto-Grading API")
engine = GradingEngine(storage)

ALLOWED_ORIGINS = CFG.get("CORS_ORIGINS") or [
    "http://localhost:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


# ---- Schemas ----
class SubmissionReq(BaseModel):
    test_id: str
    answers: dict[str, t.Any] = Field(default_factory=dict)
    submission_id: str | None = None

class GradeReq(BaseModel):
    graded_by: str | None = None
    save: bool = True

class CriteriaReq(BaseModel):
    task_achievement: float
    coherence_cohesion: float
    lexical_resource: float
    grammar_accuracy: float

class WritingReq(BaseModel):
    tasks: dict[str, CriteriaReq]
    graded_by: str | None = None


# ---- Helpers ----
def _grade_or_404(submission_id: str):
    try:
        return engine.grade_submission(submission_id)
    except GradingError as exc:
        log.warning("cannot grade %s: %s", submission_id, exc)
        raise HTTPException(404, str(exc))


def _stored_result(submission_id: str) -> dict[str, t.Any]:
    try:
        record = storage.load_result(submission_id)
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    if not record:
        raise HTTPException(404, "result not found")
    return record


# ---- Health ----
@app.get("/")
def root():
    return {"status": "ok", "service": "ielts-autograder"}

@app.get("/health")
def health():
    return {"status": "ok", "data_dir": str(storage.DATA_ROOT)}


# ---- Inputs ----
@app.put("/tests/{test_id}/bank")
def put_bank(test_id: str, bank: dict[str, t.Any] = Body(...)):
    try:
        storage.save_bank(test_id, bank)
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    return {"ok": True, "test_id": test_id}

@app.post("/submissions")
def create_submission(req: SubmissionReq):
    sid = req.submission_id or str(uuid.uuid4())
    try:
        record = storage.save_submission(sid, req.test_id, req.answers)
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    return {"submission_id": sid, "status": record["status"]}


# ---- Grading ----
@app.post("/submissions/{sid}/grade")
def grade_submission(sid: str, req: GradeReq | None = None):
    req = req or GradeReq()
    result = _grade_or_404(sid)
    if req.save:
        engine.save_grading_result(sid, result, req.graded_by or DEFAULT_GRADED_BY)
    return {"submission_id": sid, "saved": req.save, **result.to_dict()}

@app.post("/submissions/{sid}/writing")
def grade_writing(sid: str, req: WritingReq):
    result = _grade_or_404(sid)
    grades = {task_id: WritingCriteria(**c.model_dump()) for task_id, c in req.tasks.items()}
    try:
        result = apply_manual_writing(result, grades)
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    engine.save_grading_result(sid, result, req.graded_by or DEFAULT_GRADED_BY)
    return {"submission_id": sid, **result.to_dict()}


# ---- Results ----
@app.get("/submissions/{sid}/result")
def get_result(sid: str, rows: bool = Query(False, description="Include flat export rows")):
    record = _stored_result(sid)
    if not rows:
        return record
    out = dict(record)
    out["rows"] = to_rows(rows_from_record(record))
    return out

@app.get("/submissions/{sid}/result.csv")
def get_result_csv(sid: str):
    record = _stored_result(sid)
    body = to_csv(rows_from_record(record))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{sid}_results.csv\""},
    )

@app.delete("/submissions/{sid}/result")
def delete_result(sid: str):
    try:
        removed = storage.delete_result(sid)
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    if not removed:
        raise HTTPException(404, "result not found")
    return {"ok": True}

@app.get("/tests/{test_id}/results")
def list_results(test_id: str):
    return {"results": storage.list_results_for_test(test_id)}
