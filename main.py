# main.py
import os
import json
import uuid
import shutil
import logging
from typing import Optional, List

from fastapi import FastAPI, UploadFile, File, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from data_alchemist.backend import DataManager
from data_alchemist.config import get_settings, configure_logging
from data_alchemist.errors import DataAlchemistError, UnsupportedInputError, UnknownPresetError
from data_alchemist.models import BusinessRule, CorrectionSuggestion, RuleRecommendation
from data_alchemist.priorities import list_presets

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger("data_alchemist.api")

app = FastAPI(title="Data Alchemist")

# Enable CORS for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global DataManager instance to persist data across requests
global_data_manager: Optional[DataManager] = None

NO_DATA_MESSAGE = "No data loaded. Please upload files first."


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


def get_or_create_data_manager() -> Optional[DataManager]:
    """Get the global data manager, reloading the last uploaded files if needed"""
    global global_data_manager

    if global_data_manager is not None:
        return global_data_manager

    state_file = get_settings().state_file
    if not os.path.exists(state_file):
        return None

    try:
        with open(state_file) as f:
            file_paths = json.load(f)
        if not all(os.path.exists(path) for path in file_paths.values()):
            return None
        logger.info("Reloading data from stored files: %s", file_paths)
        dm = DataManager()
        dm.load_files(file_paths["clients"], file_paths["workers"], file_paths["tasks"])
    except (OSError, ValueError, KeyError, DataAlchemistError):
        logger.exception("Failed to reload data from %s", state_file)
        return None

    dm.validate_all()
    global_data_manager = dm
    return dm


def save_current_files(clients_path: str, workers_path: str, tasks_path: str):
    """Save the current file paths for reloading after server restart"""
    file_paths = {
        "clients": clients_path,
        "workers": workers_path,
        "tasks": tasks_path,
    }
    with open(get_settings().state_file, "w") as f:
        json.dump(file_paths, f)


def save_upload_file(upload_file: UploadFile) -> str:
    upload_dir = get_settings().upload_dir
    os.makedirs(upload_dir, exist_ok=True)
    file_id = str(uuid.uuid4())
    file_path = os.path.join(upload_dir, f"{file_id}_{os.path.basename(upload_file.filename or 'upload')}")
    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(upload_file.file, buffer)
    return file_path


def data_response(dm: DataManager) -> dict:
    summary = dm.validation_summary()
    return {
        "errors": [issue.to_dict() for issue in dm.issues],
        "data": {
            "clients": dm.clients,
            "workers": dm.workers,
            "tasks": dm.tasks,
        },
        "summary": {
            "total_clients": len(dm.clients),
            "total_workers": len(dm.workers),
            "total_tasks": len(dm.tasks),
            "error_count": summary["error"],
            "warning_count": summary["warning"],
            "issue_count": summary["total"],
        },
    }


# Endpoint to accept files from frontend
@app.post("/upload")
async def upload_files(
    clients: UploadFile = File(...),
    workers: UploadFile = File(...),
    tasks: UploadFile = File(...)
):
    global global_data_manager
    try:
        clients_path = save_upload_file(clients)
        workers_path = save_upload_file(workers)
        tasks_path = save_upload_file(tasks)
        logger.info("Files saved: %s, %s, %s", clients_path, workers_path, tasks_path)

        dm = DataManager()
        dm.load_files(clients_path, workers_path, tasks_path)
        if not dm.has_data():
            return error_response(400, "Failed to load data from files")

        global_data_manager = dm
        save_current_files(clients_path, workers_path, tasks_path)
        dm.validate_all()

        response = {"status": "success"}
        response.update(data_response(dm))
        response["header_mappings"] = dm.header_mappings
        response["load_errors"] = dm.load_errors
        return response

    except UnsupportedInputError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.exception("Error in upload endpoint")
        return error_response(500, str(e))


@app.post("/validate")
async def run_validation():
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)
    dm.validate_all()
    response = {"status": "success"}
    response.update(data_response(dm))
    return response


# Natural language search
@app.post("/nl_search")
async def nl_search(query: str = Form(...)):
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)
    results = dm.natural_language_search(query)
    return {"status": "success", "results": results}


# Rule generation from natural language (not added to the rule set)
@app.post("/ai_generate_rule")
async def ai_generate_rule(request: dict):
    user_input = str(request.get("input", "")).strip()
    if not user_input:
        return error_response(400, "No input provided")

    dm = get_or_create_data_manager() or DataManager()
    rule = dm.generate_rule_from_natural_language(user_input)
    return {"status": "success", "rule": rule.to_dict()}


@app.get("/rules")
async def list_rules():
    dm = get_or_create_data_manager()
    rules = dm.rules if dm else []
    return {"status": "success", "rules": [rule.to_dict() for rule in rules]}


@app.post("/rules")
async def add_rule(request: dict):
    """Add a rule from {"input": text}, {"rule": {...}} or {"recommendation": {...}}."""
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)
    try:
        if request.get("input"):
            rule = dm.add_rule_from_nl(str(request["input"]))
        elif isinstance(request.get("rule"), dict):
            rule = dm.add_rule(BusinessRule.from_dict(request["rule"]))
        elif isinstance(request.get("recommendation"), dict):
            rule = dm.accept_recommendation(RuleRecommendation.from_dict(request["recommendation"]))
        else:
            return error_response(400, "No rule provided")
    except (KeyError, ValueError, TypeError) as e:
        return error_response(400, f"Invalid rule: {e}")
    return {"status": "success", "rule": rule.to_dict()}


@app.delete("/rules/{rule_id}")
async def delete_rule(rule_id: str):
    dm = get_or_create_data_manager()
    if not dm or not dm.remove_rule(rule_id):
        return error_response(404, f"Rule {rule_id} not found")
    return {"status": "success"}


@app.patch("/rules/{rule_id}")
async def toggle_rule(rule_id: str, request: dict):
    dm = get_or_create_data_manager()
    rule = dm.set_rule_enabled(rule_id, bool(request.get("enabled", True))) if dm else None
    if rule is None:
        return error_response(404, f"Rule {rule_id} not found")
    return {"status": "success", "rule": rule.to_dict()}


# Rule recommendations mined from the loaded data
@app.post("/ai_rule_recommendations")
async def ai_rule_recommendations():
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)
    recommendations = dm.get_recommended_rules()
    return {"status": "success", "rules": [r.to_dict() for r in recommendations]}


# Row correction suggestions
@app.get("/suggest_corrections")
async def suggest_corrections():
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)
    suggestions = dm.suggest_corrections()
    return {"status": "success", "suggestions": [s.to_dict() for s in suggestions]}


# Apply corrections (all current suggestions unless a list is given)
@app.post("/apply_corrections")
async def apply_corrections(request: Optional[dict] = None):
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)

    suggestions: Optional[List[CorrectionSuggestion]] = None
    if request and isinstance(request.get("suggestions"), list):
        try:
            suggestions = [CorrectionSuggestion.from_dict(s) for s in request["suggestions"]]
        except (KeyError, ValueError, TypeError) as e:
            return error_response(400, f"Invalid suggestion: {e}")

    result = dm.apply_corrections(suggestions)
    response = {
        "status": "success",
        "message": f"Applied fixes. Issues reduced from {result['issues_before']} to {result['issues_after']}",
        "changes": result["changes"],
    }
    response.update(data_response(dm))
    return response


@app.get("/priorities")
async def get_priorities():
    dm = get_or_create_data_manager()
    weights = dm.priorities if dm else DataManager().priorities
    return {"status": "success", "weights": weights, "presets": list_presets()}


@app.post("/priorities")
async def set_priorities(request: dict):
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)
    try:
        if request.get("preset"):
            weights = dm.apply_preset(str(request["preset"]))
        else:
            weights = dm.set_priorities(request.get("weights") or {})
    except UnknownPresetError as e:
        return error_response(404, str(e))
    except (ValueError, TypeError) as e:
        return error_response(400, str(e))
    return {"status": "success", "weights": weights}


# Export processed data as downloadable file contents
@app.post("/export_download")
async def export_download():
    dm = get_or_create_data_manager()
    if not dm:
        return error_response(400, NO_DATA_MESSAGE)

    files_data = dm.export_payload()
    logger.info("Prepared %d files for download", len(files_data))
    return {
        "status": "success",
        "message": f"Prepared {len(files_data)} files for download",
        "files": files_data,
        "summary": {
            "total_files": len(files_data),
            "clients_count": len(dm.clients),
            "workers_count": len(dm.workers),
            "tasks_count": len(dm.tasks),
            "rules_count": len(dm.rules),
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
