"""
HTTP API over the scan engine (FastAPI, served by uvicorn).
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import __version__
from .composer import apply_edits, compose_all, compose_single
from .config import SentinelConfig
from .context import ScanContext
from .engine import scan_code, scan_path, source_kind_for
from .errors import ScanTargetError

logger = logging.getLogger(__name__)


# ============================================================================
# REQUEST MODELS
# ============================================================================

class ScanRequest(BaseModel):
    language: str
    content: str


class PathScanRequest(BaseModel):
    path: str


class FixRequest(BaseModel):
    language: str
    content: str
    feature_id: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None


# ============================================================================
# APP
# ============================================================================

def create_app(context: Optional[ScanContext] = None, config: Optional[SentinelConfig] = None) -> FastAPI:
    config = config or SentinelConfig.from_env()
    context = context or ScanContext.from_config(config)

    app = FastAPI(
        title="Baseline Sentinel API",
        description="Scan style, script and markup sources for features below Baseline and compose fixes",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.context = context
    app.state.config = config

    def _require_kind(language: str):
        kind = source_kind_for(language)
        if kind is None:
            raise HTTPException(status_code=400, detail=f"Unsupported language: {language}")
        return kind

    @app.get("/")
    async def root():
        return {
            "message": "Baseline Sentinel API",
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "feature": "/features/{feature_id}",
                "scan": "/scan",
                "scan_path": "/scan/path",
                "fix": "/fix",
            },
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "features_loaded": len(context.oracle),
            "remediations": len(context.catalog),
            "target": context.target.value,
        }

    @app.get("/features/{feature_id}")
    async def get_feature_details(feature_id: str):
        remediation = context.catalog.lookup(feature_id)
        if remediation is None and feature_id not in context.oracle:
            raise HTTPException(status_code=404, detail=f"Feature '{feature_id}' not found")
        return {
            "featureId": feature_id,
            "status": context.oracle.classify(feature_id).value,
            "compliant": context.oracle.is_compliant(feature_id, context.target),
            "docUrl": context.oracle.doc_url(feature_id),
            "webFeature": context.oracle.web_feature(feature_id),
            "remediation": remediation.to_dict() if remediation else None,
        }

    @app.post("/scan")
    async def scan_endpoint(request: ScanRequest):
        _require_kind(request.language)
        findings = scan_code(request.content, request.language, context)
        return {"total": len(findings), "findings": [f.to_dict() for f in findings]}

    @app.post("/scan/path")
    async def scan_path_endpoint(request: PathScanRequest):
        try:
            report = scan_path(request.path, context, config)
        except ScanTargetError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return report.to_dict()

    @app.post("/fix")
    async def fix_endpoint(request: FixRequest):
        kind = _require_kind(request.language)
        findings = scan_code(request.content, request.language, context)

        if request.feature_id or request.line is not None:
            matches = [
                f for f in findings
                if (request.feature_id is None or f.feature_id == request.feature_id)
                and (request.line is None or f.line == request.line)
                and (request.column is None or f.column == request.column)
            ]
            if not matches:
                raise HTTPException(status_code=404, detail="No matching finding")
            target = matches[0]
            fix = context.catalog.preferred_fix(target.fix_id)
            edits = compose_single(request.content, target, fix, kind) if fix else []
        else:
            edits = compose_all(request.content, findings, kind, context.catalog)

        return {
            "findings": [f.to_dict() for f in findings],
            "edits": [e.to_dict() for e in edits],
            "content": apply_edits(request.content, edits),
        }

    return app


def serve(host: str = "127.0.0.1", port: int = 8000, config: Optional[SentinelConfig] = None):
    logger.info("Starting Baseline Sentinel API on %s:%d", host, port)
    uvicorn.run(create_app(config=config), host=host, port=port)
