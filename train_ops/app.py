from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List
import logging
import os
import time

from . import crud
from .audit import AuditSink
from .auth import get_current_controller, require_admin, require_controller
from .config import EngineConfig
from .database import get_db, engine, Base
from .errors import InvalidInputError, NotFoundError, TrainOpsError
from .kpi import load_kpi
from .metrics import get_metrics, record_suggestions
from .middleware import LoggingMiddleware
from .models import Controller, Role
from .registry import TrainRegistry
from .schemas import (
    AcceptSuggestionResponse, AuditLogResponse, ControllerResponse, Identity,
    KPISnapshot, SectionStatus, Suggestion, TrainActionRequest, TrainActionResponse,
    TrainCreate, TrainResponse, UserCreate, UserResponse,
)
from .sections import SectionMonitor
from .suggestions import SuggestionEngine

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)

config = EngineConfig.from_env()
audit_sink = AuditSink()
registry = TrainRegistry(config, audit_sink)
section_monitor = SectionMonitor(config)
suggestion_engine = SuggestionEngine(config)

app = FastAPI(
    title="RailOptima Train Operations Engine",
    description="Train lifecycle control, section congestion monitoring and rule-based suggestions",
    version="1.0.0"
)

app.add_middleware(LoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrainOpsError)
async def train_ops_error_handler(request: Request, exc: TrainOpsError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
    error = InvalidInputError(f"Missing or invalid fields: {fields}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.get("/")
async def root():
    return {"message": "RailOptima Train Operations Engine", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "service": "train-ops",
        "sections": config.section_names,
        "version": "1.0.0"
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# Administrative operations

@app.post("/admin/trains", response_model=TrainResponse)
def create_train(
    payload: TrainCreate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Register a new train in the SCHEDULED state"""
    return registry.create_train(db, payload, creator_id=identity.user_id)


@app.get("/admin/trains", response_model=List[TrainResponse])
def list_all_trains(
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All trains, newest first"""
    return registry.list_trains(db, order=crud.ORDER_CREATED_DESC)


@app.get("/admin/kpi", response_model=KPISnapshot)
def compute_kpi(
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return load_kpi(db)


@app.get("/admin/logs", response_model=List[AuditLogResponse])
def list_audit_logs(
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Latest 100 audit entries"""
    with crud.store_errors(db, "list_audit_logs"):
        return crud.list_audit_entries(db, limit=100)


@app.get("/admin/users", response_model=List[UserResponse])
def list_users(
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    with crud.store_errors(db, "list_users"):
        return crud.list_users(db)


@app.post("/admin/users", response_model=UserResponse)
def provision_user(
    payload: UserCreate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a user record; controllers are assigned to a section"""
    section = None
    if payload.role == Role.CONTROLLER:
        section = payload.assigned_section or config.section_names[0]
        if not config.has_section(section):
            raise InvalidInputError(f"Unknown section {section}")

    with crud.store_errors(db, "provision_user"):
        user = crud.create_user(db, payload.name, payload.email, payload.role, assigned_section=section)

    logger.info(f"User {user.email} provisioned with role {user.role.value}")
    audit_sink.append(
        db,
        action="REGISTER",
        actor_id=identity.user_id,
        details=f"New user {user.email} registered with role {user.role.value}",
    )
    return user


# Controller operations

@app.get("/controller/profile", response_model=ControllerResponse)
def controller_profile(controller: Controller = Depends(get_current_controller)):
    return controller


@app.get("/controller/trains", response_model=List[TrainResponse])
def list_section_trains(
    controller: Controller = Depends(get_current_controller),
    db: Session = Depends(get_db)
):
    """Trains in the caller's section, earliest scheduled first"""
    return registry.list_trains(db, section=controller.assigned_section, order=crud.ORDER_SCHEDULED_ASC)


@app.post("/controller/trains/{record_id}/action", response_model=TrainActionResponse)
def apply_train_action(
    record_id: int,
    request: TrainActionRequest,
    controller: Controller = Depends(get_current_controller),
    db: Session = Depends(get_db)
):
    train = registry.apply_action(
        db,
        record_id,
        request.action,
        acting_section=controller.assigned_section,
        actor_id=controller.user_id,
        controller_id=controller.id,
    )
    return TrainActionResponse(
        message="Action completed successfully",
        train=TrainResponse.model_validate(train),
    )


@app.get("/controller/sections", response_model=List[SectionStatus])
def classify_sections(
    identity: Identity = Depends(require_controller),
    db: Session = Depends(get_db)
):
    return section_monitor.classify_sections(db)


@app.get("/controller/suggestions", response_model=List[Suggestion])
def generate_suggestions(
    controller: Controller = Depends(get_current_controller),
    db: Session = Depends(get_db)
):
    suggestions = suggestion_engine.suggest_for_section(db, controller.assigned_section)
    record_suggestions(suggestions)
    return suggestions


@app.post("/controller/suggestions/{suggestion_id}/accept", response_model=AcceptSuggestionResponse)
def accept_suggestion(
    suggestion_id: str,
    controller: Controller = Depends(get_current_controller),
    db: Session = Depends(get_db)
):
    """Acknowledge a suggestion. Suggestions are not stored, so only the audit trail changes."""
    current = suggestion_engine.suggest_for_section(db, controller.assigned_section)
    if suggestion_id not in {s.id for s in current}:
        raise NotFoundError(f"Suggestion {suggestion_id} is not current for {controller.assigned_section}")

    logger.info(f"Controller {controller.id} accepted {suggestion_id}")
    audit_sink.append(
        db,
        action="ACCEPT_SUGGESTION",
        actor_id=controller.user_id,
        controller_id=controller.id,
        details=f"Accepted suggestion {suggestion_id}",
    )
    return AcceptSuggestionResponse(message="Suggestion accepted", suggestion_id=suggestion_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
