from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
import logging
from typing import List

# Prometheus metrics
from prometheus_fastapi_instrumentator import Instrumentator

from ahp import (
    AhpCalculationRequest,
    AhpSolver,
    AhpWeightResponse,
    ManualWeightsRequest,
    WeightProfile,
    default_store,
    random_index,
)
from classification import ClassificationThresholds
from errors import EngineError
from evaluation import (
    EmployeeEvaluation,
    EmployeeEvaluationRequest,
    RosterEvaluationRequest,
    RosterReport,
    evaluate_employee,
    evaluate_roster,
)
from scoring import ScoringParameters

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="HCROI Engine Service", version="1.0.0")

# Initialize Prometheus metrics
Instrumentator().instrument(app).expose(app)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _bad_request(e: Exception) -> HTTPException:
    logger.info(f"Rejected request: {type(e).__name__}: {e}")
    return HTTPException(status_code=400, detail=str(e))


# ============== API Endpoints ==============
@app.get("/")
async def root():
    return {
        "service": "HCROI Engine Service",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
async def health():
    return {"status": "healthy"}


# ============== AHP WEIGHT ENDPOINTS ==============

@app.get("/ahp/weights", response_model=WeightProfile)
async def get_active_weights():
    """Currently active weight profile"""
    return default_store.get_active()


@app.get("/ahp/weights/history", response_model=List[WeightProfile])
async def get_weight_history():
    """Previously active profiles, oldest first"""
    return default_store.history()


@app.post("/ahp/calculate", response_model=AhpWeightResponse)
async def calculate_ahp_weights(request: AhpCalculationRequest):
    """
    Derive weights from pairwise judgments.

    Judgments are the upper triangle of the comparison matrix, row-major:
    for 3 criteria [A vs B, A vs C, B vs C].

    A consistency ratio >= 0.10 is reported, not rejected, unless
    require_consistent is set: then the profile is returned with 422 and
    the active profile is left untouched.
    """
    try:
        solver = AhpSolver(method=request.method)
        profile = solver.derive_profile(request.criteria, request.upper_triangle_values)
    except (EngineError, ValidationError) as e:
        raise _bad_request(e)

    if not profile.is_consistent and request.require_consistent:
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"Consistency ratio {profile.consistency_ratio:.4f} exceeds 0.10",
                "profile": profile.to_record(),
            },
        )

    activated = False
    if request.activate:
        profile = default_store.activate(profile)
        activated = True

    if profile.is_consistent:
        message = "Weights calculated"
    else:
        message = f"Warning: consistency ratio {profile.consistency_ratio:.4f} exceeds 0.10"

    return AhpWeightResponse(profile=profile, activated=activated, message=message)


@app.put("/ahp/weights", response_model=AhpWeightResponse)
async def set_manual_weights(request: ManualWeightsRequest):
    """Set weights directly (bypasses AHP and its consistency check)"""
    try:
        profile = default_store.set_weights(request.criteria_names, request.weights)
    except EngineError as e:
        raise _bad_request(e)
    return AhpWeightResponse(profile=profile, activated=True, message="Weights set directly")


@app.get("/ahp/random-index/{n}")
async def get_random_index(n: int):
    """Random Index benchmark used for the consistency ratio"""
    try:
        return {"n": n, "randomIndex": random_index(n)}
    except EngineError as e:
        raise _bad_request(e)


# ============== EVALUATION ENDPOINTS ==============

@app.post("/evaluate/employee", response_model=EmployeeEvaluation)
async def evaluate_single_employee(request: EmployeeEvaluationRequest):
    """Scores, trends and tiers for every period of one employee"""
    try:
        return evaluate_employee(
            request.employee,
            default_store.get_active(),
            request.parameters,
            request.thresholds,
            through_period=request.period,
        )
    except EngineError as e:
        raise _bad_request(e)


@app.post("/evaluate/roster", response_model=RosterReport)
async def evaluate_employee_roster(request: RosterEvaluationRequest):
    """Roster report: red zone, watch list, top performers, BEP status"""
    try:
        return evaluate_roster(
            request.employees,
            default_store.get_active(),
            request.parameters,
            request.thresholds,
            period=request.period,
        )
    except EngineError as e:
        raise _bad_request(e)


@app.get("/config/defaults")
async def get_default_config():
    """Default scoring parameters and classification thresholds"""
    return {
        "parameters": ScoringParameters().to_record(),
        "thresholds": ClassificationThresholds().to_record(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8030)
