from dotenv import load_dotenv
load_dotenv(dotenv_path=".env", override=True)

import os
import sys
import json
import base64
import binascii
import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# ---------------- PATH SETUP ----------------

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# ---------------- INTERNAL IMPORTS ----------------

from config import PROJECT_NAME, VERSION
from escalation.cases import (
    CaseError,
    InvalidTransitionError,
    advance_status,
    assign_expert,
    build_escalation_case,
)
from escalation.classifier import classify
from escalation.matcher import find_best_expert, rank_experts
from escalation.models import (
    CaseStatus,
    Category,
    EscalationCase,
    EscalationDecision,
    Expert,
    ImageAnalysis,
    ImageSeverity,
    Location,
    MatchCriteria,
    QueryType,
)
from escalation.roster import DEFAULT_EXPERTS, get_expert
from escalation.store import CaseNotFoundError, CaseStore
from escalation.urgency import calculate_urgency_level
from knowledge.knowledge_base import search_knowledge_base
from llm.advisor import FarmerAdvisor
from llm.image_analyzer import ImageAnalysisError, analyze_image
from llm.llm_client import LLMClient
from nlp.language_detector import detect_language, speaks_language
from speech.transcript import validate_transcript

# ---------------- APP INIT ----------------

app = FastAPI(
    title=PROJECT_NAME,
    description="Farmer advisory with expert escalation",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[
        "X-Escalation-Required",
        "X-Escalation-Severity",
        "X-Escalation-Triggers",
    ],
)

# ---------------- STATE ----------------

app.state.cases = CaseStore()
app.state.roster = DEFAULT_EXPERTS
app.state.llm = None


def get_llm():
    # created on first use so the escalation endpoints work without credentials
    if app.state.llm is None:
        provider = os.getenv("LLM_PROVIDER", "gemini")
        try:
            app.state.llm = LLMClient(provider=provider)
        except (RuntimeError, ValueError) as e:
            logging.error(f"❌ LLM unavailable: {e}")
            raise HTTPException(503, "Advisory model is not configured")
        logging.info(f"✅ LLM ready (provider={provider})")
    return app.state.llm

# ---------------- SCHEMAS ----------------

class ImageSignal(BaseModel):
    confidence: float = Field(ge=0.0, le=1.0)
    severity: ImageSeverity


class ChatRequest(BaseModel):
    question: str
    query_type: QueryType = QueryType.TEXT
    transcript_confidence: Optional[float] = None
    manual: bool = False


class ChatResponse(BaseModel):
    status: str
    answer: Optional[str] = None
    confidence: float = 0.0
    language: Optional[str] = None
    knowledge_hits: List[str] = []
    message: Optional[str] = None
    escalation: Optional[EscalationDecision] = None


class ImageRequest(BaseModel):
    image: str                       # base64, no data: prefix
    filename: Optional[str] = None


class ImageResponse(BaseModel):
    analysis: ImageAnalysis
    escalation: EscalationDecision


class CheckRequest(BaseModel):
    query: str = ""
    ai_confidence: Optional[float] = None
    image_analysis: Optional[ImageSignal] = None
    manual: bool = False
    category: Category = Category.OTHER


class CheckResponse(BaseModel):
    escalation: EscalationDecision
    urgency_level: Optional[int] = None


class CaseRequest(BaseModel):
    query: str
    query_type: QueryType = QueryType.TEXT
    ai_confidence: Optional[float] = None
    ai_response: Optional[str] = None
    image_analysis: Optional[ImageSignal] = None
    image_urls: List[str] = []
    manual: bool = False

    category: Category = Category.OTHER
    farmer_name: str
    farmer_phone: Optional[str] = None
    farmer_email: Optional[str] = None
    location: Optional[Location] = None
    crop_type: Optional[str] = None
    farm_size: Optional[str] = None
    additional_info: Optional[str] = None


class StatusUpdate(BaseModel):
    status: CaseStatus
    expert_response: Optional[str] = None


class AssignRequest(BaseModel):
    expert_id: str


class RankedExpert(BaseModel):
    expert: Expert
    score: float


class MatchResponse(BaseModel):
    expert: Optional[Expert] = None
    ranking: List[RankedExpert] = []

# ---------------- HELPERS ----------------

def _set_escalation_headers(response: Response, decision: EscalationDecision) -> None:
    if not decision.should_escalate:
        return

    response.headers["X-Escalation-Required"] = "true"
    response.headers["X-Escalation-Severity"] = decision.severity.value
    response.headers["X-Escalation-Triggers"] = json.dumps(
        [t.model_dump(mode="json", exclude_none=True) for t in decision.triggers]
    )

# ---------------- ROUTES ----------------

@app.get("/")
def health():
    return {"status": "ok"}

# ---------------- CHAT ----------------

@app.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest, response: Response):

    raw = req.question.strip()
    if not raw:
        raise HTTPException(400, "Empty question")

    if req.query_type == QueryType.VOICE:
        check = validate_transcript(raw, req.transcript_confidence)
        if not check["is_valid"]:
            return ChatResponse(
                status="repeat",
                message="We could not hear that clearly. Please repeat your question.",
                knowledge_hits=[],
            )

    result = FarmerAdvisor(get_llm()).answer(raw)

    decision = classify(raw, ai_confidence=result["confidence"], manual=req.manual)
    _set_escalation_headers(response, decision)

    return ChatResponse(
        status="answer",
        answer=result["answer"],
        confidence=result["confidence"],
        language=detect_language(raw)["language_name"],
        knowledge_hits=result["knowledge_hits"],
        escalation=decision,
    )

# ---------------- IMAGE ----------------

@app.post("/analyze-image", response_model=ImageResponse)
def analyze(req: ImageRequest, response: Response):

    if not req.image:
        raise HTTPException(400, "No image provided")

    try:
        image_bytes = base64.b64decode(req.image, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(400, "Image must be base64 encoded")

    try:
        analysis = analyze_image(image_bytes, get_llm(), filename=req.filename)
    except ImageAnalysisError as e:
        raise HTTPException(502, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))

    decision = classify(analysis.summary(), analysis.confidence, analysis)
    _set_escalation_headers(response, decision)

    return ImageResponse(analysis=analysis, escalation=decision)

# ---------------- TRIAGE ----------------

@app.post("/escalation/check", response_model=CheckResponse)
def check_escalation(req: CheckRequest, response: Response):

    decision = classify(
        req.query,
        ai_confidence=req.ai_confidence,
        image_analysis=req.image_analysis,
        manual=req.manual,
    )
    _set_escalation_headers(response, decision)

    urgency = None
    if decision.should_escalate:
        urgency = calculate_urgency_level(decision.severity, decision.triggers, req.category)

    return CheckResponse(escalation=decision, urgency_level=urgency)

# ---------------- CASES ----------------

@app.post("/escalations", response_model=EscalationCase, status_code=201)
def create_case(req: CaseRequest):

    if not req.farmer_name.strip():
        raise HTTPException(422, "Farmer name is required")

    if not (req.farmer_phone or req.farmer_email):
        raise HTTPException(422, "A phone number or email is required")

    decision = classify(
        req.query,
        ai_confidence=req.ai_confidence,
        image_analysis=req.image_analysis,
        manual=req.manual,
    )

    try:
        case = build_escalation_case(
            decision,
            req.query,
            category=req.category,
            farmer_name=req.farmer_name.strip(),
            farmer_phone=req.farmer_phone,
            farmer_email=req.farmer_email,
            location=req.location,
            crop_type=req.crop_type,
            farm_size=req.farm_size,
            additional_info=req.additional_info,
            query_type=req.query_type,
            image_urls=req.image_urls,
            ai_response=req.ai_response,
            confidence=req.ai_confidence,
            language=detect_language(req.query)["language_name"],
            roster=app.state.roster,
        )
    except CaseError as e:
        raise HTTPException(422, str(e))

    return app.state.cases.add(case)


@app.get("/escalations", response_model=List[EscalationCase])
def list_cases(status: Optional[CaseStatus] = None):
    return app.state.cases.list(status=status)


@app.get("/escalations/{case_id}", response_model=EscalationCase)
def get_case(case_id: str):
    try:
        return app.state.cases.get(case_id)
    except CaseNotFoundError as e:
        raise HTTPException(404, str(e))


@app.patch("/escalations/{case_id}/status", response_model=EscalationCase)
def update_status(case_id: str, req: StatusUpdate):
    # an assigned case must name its expert, which only /assign records
    if req.status == CaseStatus.ASSIGNED:
        raise HTTPException(409, f"Use /escalations/{case_id}/assign to assign an expert")

    try:
        return app.state.cases.transition(
            case_id,
            lambda case: advance_status(case, req.status, expert_response=req.expert_response),
        )
    except CaseNotFoundError as e:
        raise HTTPException(404, str(e))
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))


@app.post("/escalations/{case_id}/assign", response_model=EscalationCase)
def assign_case(case_id: str, req: AssignRequest):
    expert = get_expert(req.expert_id, app.state.roster)
    if expert is None:
        raise HTTPException(404, f"Expert {req.expert_id} not found")

    try:
        return app.state.cases.transition(case_id, lambda case: assign_expert(case, expert))
    except CaseNotFoundError as e:
        raise HTTPException(404, str(e))
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))

# ---------------- EXPERTS ----------------

@app.get("/experts", response_model=List[Expert])
def list_experts():
    return list(app.state.roster)


@app.post("/experts/match", response_model=MatchResponse)
def match_expert(criteria: MatchCriteria):
    ranking = rank_experts(criteria, app.state.roster)

    return MatchResponse(
        expert=find_best_expert(criteria, app.state.roster),
        ranking=[RankedExpert(expert=e, score=round(s, 2)) for e, s in ranking],
    )


@app.get("/experts/{expert_id}/speaks")
def expert_speaks(expert_id: str, text: str) -> Dict:
    expert = get_expert(expert_id, app.state.roster)
    if expert is None:
        raise HTTPException(404, f"Expert {expert_id} not found")

    detection = detect_language(text)
    return {
        "language": detection["language_name"],
        "speaks": speaks_language(expert.languages, detection["language_name"]),
    }

# ---------------- KNOWLEDGE ----------------

@app.get("/knowledge/search")
def knowledge_search(q: str, category: Optional[str] = None):
    return {
        "results": [
            e.model_dump() for e in search_knowledge_base(q, category=category)
        ]
    }
