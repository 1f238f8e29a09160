import os
import json
import logging
from typing import Optional, Dict, Any

import yaml
from fastapi import FastAPI, UploadFile, File, Form, HTTPException
from fastapi.responses import PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from rules_enhancer import RulesEnhancer, TransformError, load_config, dump_config, SCRIPT_NAME, VERSION

log = logging.getLogger(__name__)

app = FastAPI(title="Clash Rules Enhancer")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.environ.get('DATA_DIR', BASE_DIR)
ARGUMENTS_FILE = os.path.join(DATA_DIR, 'arguments.json')  # Default script arguments

# ==================== Arguments ====================

def load_default_arguments() -> dict:
    """Load default script arguments, overridden per request"""
    if not os.path.exists(ARGUMENTS_FILE):
        return {}
    try:
        with open(ARGUMENTS_FILE, 'r', encoding='utf-8') as f:
            arguments = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        log.warning(f"Cannot read {ARGUMENTS_FILE}: {e}")
        return {}
    return arguments if isinstance(arguments, dict) else {}

# ==================== Data Models ====================

class TransformRequest(BaseModel):
    content: str
    arguments: Optional[Dict[str, Any]] = None

# ==================== Helper Functions ====================

def parse_content(content: str) -> dict:
    try:
        return load_config(content)
    except yaml.YAMLError as e:
        raise HTTPException(status_code=400, detail=f"Invalid YAML: {str(e)[:100]}")
    except TransformError as e:
        raise HTTPException(status_code=400, detail=str(e))

def run_transform(config: dict, arguments: Optional[Dict[str, Any]]) -> PlainTextResponse:
    merged_arguments = {**load_default_arguments(), **(arguments or {})}
    outcome = RulesEnhancer(merged_arguments).run(config)
    headers = {
        "X-Transform-Status": "ok" if outcome.ok else "failed",
        "X-Dropped-Nodes": str(len(outcome.dropped)),
    }
    if outcome.error:
        # Header values must be latin-1
        headers["X-Transform-Error"] = outcome.error.encode('unicode_escape').decode('ascii')
    return PlainTextResponse(dump_config(outcome.config), media_type='application/yaml', headers=headers)

# ==================== API ====================

@app.get("/api/status")
def get_status():
    return {"name": SCRIPT_NAME, "version": VERSION}

@app.post("/api/transform")
def transform(data: TransformRequest):
    config = parse_content(data.content)
    return run_transform(config, data.arguments)

@app.post("/api/transform/upload")
async def transform_upload(file: UploadFile = File(...), arguments: str = Form(default="")):
    try:
        content = (await file.read()).decode('utf-8')
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded")

    parsed_arguments = None
    if arguments:
        try:
            parsed_arguments = json.loads(arguments)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="arguments must be a JSON object")
        if not isinstance(parsed_arguments, dict):
            raise HTTPException(status_code=400, detail="arguments must be a JSON object")

    config = parse_content(content)
    return run_transform(config, parsed_arguments)


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    port = int(os.environ.get('PORT', 8666))
    uvicorn.run(app, host="0.0.0.0", port=port)
